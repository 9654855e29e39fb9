import argparse
import json
import os
import sys
import time

import pandas as pd

from .config import STAGE_MAP, TOKEN_FRIENDLY_NAMES
from .core.classes import AnalysisResult, ErrorType
from .pipeline import analyze
from .utils import AnalysisArtifactEncoder, TerminalColors, offset_to_line_column, to_lark_tree


def _tokens_frame(result: AnalysisResult) -> pd.DataFrame:
    rows = [
        {"position": t.position, "type": t.type.value, "value": t.value if t.value is not None else "", "description": TOKEN_FRIENDLY_NAMES[t.type.value]}
        for t in result.tokens
    ]
    return pd.DataFrame(rows, columns=["position", "type", "value", "description"])


def _symbols_frame(result: AnalysisResult) -> pd.DataFrame:
    rows = [
        {"token": e.token, "type": e.type.value, "first": e.first_occurrence, "count": len(e.occurrences), "occurrences": ", ".join(map(str, e.occurrences))}
        for e in result.symbol_table
    ]
    return pd.DataFrame(rows, columns=["token", "type", "first", "count", "occurrences"])


def _caret_line(source: str, position: int) -> str:
    """Renders the line holding `position` with a caret under its column."""
    line, column = offset_to_line_column(source, position)
    text = source.split("\n")[line]
    # Tabs are kept in the padding so the caret lines up with tabbed text.
    padding = "".join("\t" if ch == "\t" else " " for ch in text[:column])
    return f"  {text}\n  {padding}^"


def print_report(source: str, result: AnalysisResult):
    """Prints the human readable report: banner, tables, statistics and tree or diagnostics."""
    if result.success:
        print(f"\n{TerminalColors.GREEN}--- {result.message} ---{TerminalColors.RESET}")
    else:
        print(f"\n{TerminalColors.RED}--- {result.error_type.value} ---\n{result.message}{TerminalColors.RESET}")

    if result.errors:
        for diagnostic in result.errors:
            if diagnostic.position is not None:
                print(_caret_line(source, diagnostic.position))

    if result.tokens:
        print(f"\n{TerminalColors.CYAN}Tokens{TerminalColors.RESET}")
        print(_tokens_frame(result).to_string(index=False))

    if result.symbol_table:
        print(f"\n{TerminalColors.CYAN}Symbol Table{TerminalColors.RESET}")
        print(_symbols_frame(result).to_string(index=False))

    if result.statistics:
        by_type = ", ".join(f"{kind}={count}" for kind, count in result.statistics.tokens_by_type.items())
        print(f"\nTotal tokens: {result.statistics.total_tokens} ({by_type})")

    if result.parse_tree:
        print(f"\n{TerminalColors.CYAN}Derivation Tree{TerminalColors.RESET}")
        print(to_lark_tree(result.parse_tree).pretty(), end="")


def main():
    start_time = time.perf_counter()

    # Dynamically generate help text for the --stage argument
    stage_help_text = "Stop after a specific stage and save its artifact. "
    for key, (name, desc) in STAGE_MAP.items():
        stage_help_text += f"'{key}' for {desc}. "
    stage_help_text += "Omitting this flag runs the full analysis."

    parser = argparse.ArgumentParser(description="Analyze a single-line arithmetic expression.")
    parser.add_argument(
        "expression",
        nargs="?",
        default=None,
        help="The expression to analyze. Omit to read it from --file or stdin.",
    )
    parser.add_argument("-f", "--file", dest="input_file", help="Read the expression from this file.")
    parser.add_argument("-o", "--output", dest="output_file", help="Write the JSON result to this file.")
    parser.add_argument("--json", action="store_true", help="Print the JSON result instead of the report.")
    parser.add_argument("-c", "--stage", type=str, choices=STAGE_MAP.keys(), help=stage_help_text)

    args = parser.parse_args()

    # --- Input Validation ---
    if args.expression is not None and args.input_file:
        parser.error("give either an expression or --file, not both.")
    if args.expression is None and not args.input_file and sys.stdin.isatty():
        parser.error("an expression is required when not reading from a file or a pipe.")

    exit_code = 0
    try:
        # --- Read Input ---
        input_file_path_abs = None
        if args.expression is not None:
            source = args.expression
        elif args.input_file:
            input_file_path_abs = os.path.abspath(args.input_file)
            with open(input_file_path_abs, "r", encoding="utf-8") as f:
                source = f.read().rstrip("\r\n")
        else:
            source = sys.stdin.read().rstrip("\r\n")

        stop_after_stage = None
        if args.stage:
            stop_after_stage, stage_desc = STAGE_MAP[args.stage]

        dump_stages = [stop_after_stage] if stop_after_stage else []

        # --- Run Analysis ---
        result = analyze(source, file_path=input_file_path_abs, dump_stages=dump_stages, stop_after_stage=stop_after_stage)
        wire = result.to_wire()

        # --- Handle Output ---
        if args.json:
            print(json.dumps(wire, indent=2, ensure_ascii=False, cls=AnalysisArtifactEncoder))
        else:
            print_report(source, result)
            if stop_after_stage and result.success:
                print(f"\n{TerminalColors.GREEN}--- Analysis to stage '{args.stage} ({stage_desc})' successful ---{TerminalColors.RESET}")

        if args.output_file:
            output_file_path = os.path.abspath(args.output_file)
            os.makedirs(os.path.dirname(output_file_path), exist_ok=True)
            with open(output_file_path, "w", encoding="utf-8") as f:
                json.dump(wire, f, indent=2, ensure_ascii=False, cls=AnalysisArtifactEncoder)
            if not args.json:
                print(f"Result written to {output_file_path}")

        if not result.success:
            exit_code = 1
            if result.error_type is ErrorType.INTERNAL_ERROR:
                print("This may be a bug in the analyzer. Please report it.", file=sys.stderr)

    # --- Error Handling ---
    except FileNotFoundError:
        print(
            f"{TerminalColors.RED}ERROR: Input file '{args.input_file}' not found.{TerminalColors.RESET}",
            file=sys.stderr,
        )
        exit_code = 1

    finally:
        # --- Execution Time ---
        if not args.json:
            duration = time.perf_counter() - start_time
            print(f"\n{TerminalColors.CYAN}--- Total Execution Time: {duration:.4f} seconds ---{TerminalColors.RESET}")

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
