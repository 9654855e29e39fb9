"""
Utility functions for the expression analyzer, including terminal coloring,
a JSON artifact serializer and conversion of derivation trees to lark trees
for pretty-printing.
"""

import json
from enum import Enum
from typing import Tuple

from lark import Token as LarkToken
from lark import Tree
from pydantic import BaseModel

from .core.classes import ParseTreeNode, WireModel


class TerminalColors:
    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    CYAN = "\033[96m"
    RESET = "\033[0m"


class AnalysisArtifactEncoder(json.JSONEncoder):
    def default(self, o):
        if isinstance(o, WireModel):
            return o.to_wire()
        if isinstance(o, BaseModel):
            return o.model_dump(mode="json")
        if isinstance(o, Enum):
            return o.value
        if isinstance(o, set):
            return list(o)
        return super().default(o)


def to_lark_tree(node: ParseTreeNode) -> Tree:
    """
    Converts a derivation tree into a lark Tree so it can be rendered with
    `Tree.pretty()`. Terminals become a subtree holding their lexeme as a
    single token; epsilon leaves become empty subtrees.
    """
    if node.is_leaf:
        children = [LarkToken(node.label, node.value)] if node.value is not None else []
        return Tree(node.label, children)
    return Tree(node.label, [to_lark_tree(child) for child in node.children])


def offset_to_line_column(source: str, offset: int) -> Tuple[int, int]:
    """Converts a 0-based character offset into a 0-based (line, column) pair."""
    before = source[:offset]
    line_start = before.rfind("\n") + 1
    return before.count("\n"), offset - line_start
