from typing import Dict, Iterable, List, Optional, Tuple

from .core.classes import Statistics, SymbolEntry, Token, TokenKind


class SymbolTable:
    """
    Aggregates tokens into unique-lexeme records. Each record is keyed by
    (kind, lexeme) and remembers where that lexeme was first seen and every
    position it occurs at. Records are kept in discovery order.
    """

    def __init__(self):
        self.symbols: Dict[Tuple[TokenKind, str], SymbolEntry] = {}
        self.token_count: Dict[TokenKind, int] = {}

    def __len__(self) -> int:
        return len(self.symbols)

    def add_token(self, token: Token):
        if token.is_eof:
            raise ValueError("The EOF marker is not a lexeme and cannot be added to the symbol table.")

        key = (token.type, token.value)
        entry = self.symbols.get(key)
        if entry is None:
            entry = SymbolEntry(token=token.value, type=token.type, first_occurrence=token.position)
            self.symbols[key] = entry

        entry.occurrences.append(token.position)
        self.token_count[token.type] = self.token_count.get(token.type, 0) + 1

    def lookup(self, kind: TokenKind, lexeme: str) -> Optional[SymbolEntry]:
        return self.symbols.get((kind, lexeme))

    def entry_at(self, position: int) -> Optional[SymbolEntry]:
        """Returns the entry with an occurrence at `position`, if any."""
        for entry in self.symbols.values():
            if position in entry.occurrences:
                return entry
        return None

    def get_table(self) -> List[SymbolEntry]:
        # Copies, so later ingestion never changes a snapshot already handed out.
        return [entry.model_copy(deep=True) for entry in self.symbols.values()]

    def get_statistics(self) -> Statistics:
        return Statistics(
            total_tokens=sum(self.token_count.values()),
            tokens_by_type={kind.value: count for kind, count in self.token_count.items()},
        )


def build_symbol_table(tokens: Iterable[Token]) -> SymbolTable:
    """
    High-level entry point for the symbol aggregation stage. The EOF marker is skipped.
    """
    table = SymbolTable()
    for token in tokens:
        if not token.is_eof:
            table.add_token(token)
    return table
