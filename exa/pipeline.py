import json
import os
import sys
import traceback
from typing import Any, Callable, Dict, List, Optional

from .config import ACCEPTED_MESSAGE, MAX_PARSE_DEPTH, STDIN_ARTIFACT_BASE, STOPPED_MESSAGE
from .core.classes import AnalysisResult, ErrorType
from .exceptions import ErrorCode, LexicalError
from .lexer.lexer import tokenize
from .parser.parser import parse
from .symbol_table import build_symbol_table
from .utils import AnalysisArtifactEncoder


class AnalysisPipeline:
    """
    Orchestrates one analysis from raw input string to final result.
    Lexer -> SymbolTable -> Parser; each stage's product is kept in
    `artifacts` under the stage name and can be dumped to JSON.
    """

    def __init__(
        self,
        source: Optional[str],
        file_path: Optional[str] = None,
        dump_stages: Optional[List[str]] = None,
        stop_after_stage: Optional[str] = None,
        max_depth: int = MAX_PARSE_DEPTH,
    ):
        self.source = source
        self.file_path = os.path.abspath(file_path) if file_path else None
        self.dump_stages = dump_stages or []
        self.stop_after_stage = stop_after_stage
        self.max_depth = max_depth
        self.artifacts: Dict[str, Any] = {}

    def run(self) -> AnalysisResult:
        """
        Executes the stages in order. Every failure is translated into a
        tagged AnalysisResult here; nothing escapes as an exception.
        """
        if self.source is None or not self.source.strip():
            return self._failure(ErrorType.INPUT_ERROR, ErrorCode.EMPTY_INPUT.value)

        try:
            # --- Stage 1: Lexical analysis ---
            try:
                tokens = self._run_stage("tokens", tokenize, self.source)
            except LexicalError as e:
                return self._failure(ErrorType.LEXICAL_ERROR, e.message)
            if self.stop_after_stage == "tokens":
                return AnalysisResult(success=True, message=STOPPED_MESSAGE.format(stage="tokens"), tokens=tokens)

            # --- Stage 2: Symbol table (side channel, the parser never sees it) ---
            symbol_table = self._run_stage("symbol_table", build_symbol_table, tokens)
            if self.stop_after_stage == "symbol_table":
                return AnalysisResult(
                    success=True,
                    message=STOPPED_MESSAGE.format(stage="symbol_table"),
                    tokens=tokens,
                    symbol_table=symbol_table.get_table(),
                    statistics=symbol_table.get_statistics(),
                )

            # --- Stage 3: Parsing ---
            parse_result = self._run_stage("parse_tree", parse, tokens, max_depth=self.max_depth)

            if not parse_result.success:
                return AnalysisResult(
                    success=False,
                    error_type=ErrorType.SYNTAX_ERROR,
                    message=parse_result.errors[0].message,
                    errors=parse_result.errors,
                    tokens=tokens,
                    symbol_table=symbol_table.get_table(),
                )

            return AnalysisResult(
                success=True,
                message=ACCEPTED_MESSAGE,
                tokens=tokens,
                symbol_table=symbol_table.get_table(),
                statistics=symbol_table.get_statistics(),
                parse_tree=parse_result.parse_tree,
            )

        except Exception:
            traceback.print_exc()
            return self._failure(ErrorType.INTERNAL_ERROR, ErrorCode.INTERNAL.value)

    def _run_stage(self, name: str, func: Callable, *args, **kwargs) -> Any:
        """Runs a single function as a stage, storing and returning its result."""
        result = func(*args, **kwargs)
        self.artifacts[name] = result
        if name in self.dump_stages:
            self.save_artifact(name, result)
        return result

    def _failure(self, error_type: ErrorType, message: str) -> AnalysisResult:
        return AnalysisResult(success=False, error_type=error_type, message=message)

    def save_artifact(self, name: str, data: Any):
        """Saves a stage artifact to `<base>.<stage>.json`."""
        if self.file_path:
            base_name = os.path.splitext(self.file_path)[0]
        else:
            base_name = STDIN_ARTIFACT_BASE

        output_path = f"{base_name}.{name}.json"

        # The symbol table stage produces the live table, persist its snapshot.
        if name == "symbol_table":
            data = {"symbolTable": data.get_table(), "statistics": data.get_statistics()}

        # stdout is reserved for the result document.
        print(f"--- Saving artifact '{name}' to {output_path} ---", file=sys.stderr)

        try:
            with open(output_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False, cls=AnalysisArtifactEncoder)
        except OSError as e:
            print(f"Error: Could not save artifact '{name}': {e}", file=sys.stderr)


def analyze(
    source: Optional[str],
    file_path: Optional[str] = None,
    dump_stages: Optional[List[str]] = None,
    stop_after_stage: Optional[str] = None,
    max_depth: int = MAX_PARSE_DEPTH,
) -> AnalysisResult:
    """High-level entry point for the analysis pipeline."""
    pipeline = AnalysisPipeline(source, file_path, dump_stages, stop_after_stage, max_depth)
    return pipeline.run()
