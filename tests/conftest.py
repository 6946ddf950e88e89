import pytest

from cnfkit.cfg_parser import parse_grammar_text

ANBN = "S -> aSb | λ"

TEXTBOOK = """
S -> ASA | aB
A -> B | S
B -> b | λ
"""

PARENS = "S -> SS | (S) | λ"

EQUAL_AB = """
S -> aB | bA
A -> a | aS | bAA
B -> b | bS | aBB
"""

EXPRESSIONS = """
E -> E+T | T
T -> T*F | F
F -> (E) | a
"""

SIMPLE = """
S -> AB
A -> a
B -> b
"""

NULLABLE_START = """
S -> AB | cSd
A -> a | λ
B -> b | λ
"""


@pytest.fixture
def grammar():
    """Parse grammar text into a fresh Grammar."""
    return parse_grammar_text
