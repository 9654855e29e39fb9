"""
Static configuration data for the expression analyzer.
This includes result messages, parser limits, pipeline stages and the
friendly names used when reporting tokens.
"""

ACCEPTED_MESSAGE = "Input string accepted!"
# Partial runs never reach the grammar check, so they must not claim acceptance.
STOPPED_MESSAGE = "Analysis stopped after stage '{stage}'"

# Maximum number of non-terminal procedures (E, E', T, T', F) active at once.
# Every '(' costs three levels and every chained operator costs one.
MAX_PARSE_DEPTH = 200

# Labels used in the derivation tree.
EPSILON_LABEL = "ε"
ID_LABEL = "id"

# Single source of truth for pipeline stage names and their order.
# The keys are what the CLI accepts for --stage.
STAGE_MAP = {
    "1": ("tokens", "Token Stream"),
    "2": ("symbol_table", "Symbol Table"),
    "3": ("parse_tree", "Derivation Tree"),
}

STDIN_ARTIFACT_BASE = "exa_output"

TOKEN_FRIENDLY_NAMES = {
    "NUMBER": "a digit",
    "IDENTIFIER": "a letter",
    "PLUS": "a plus sign '+'",
    "MINUS": "a minus sign '-'",
    "MULTIPLY": "a multiplication sign '*'",
    "DIVIDE": "a division sign '/'",
    "LPAREN": "an opening parenthesis '('",
    "RPAREN": "a closing parenthesis ')'",
    "EOF": "the end of input",
}
