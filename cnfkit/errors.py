"""
Errors raised by the grammar pipeline.

Every error derives from GrammarError (a ValueError), so callers such as the
HTTP layer can catch the whole family in one place.
"""


class GrammarError(ValueError):
    """Raised when a grammar is structurally invalid or cannot be represented."""


class CFGError(GrammarError):
    """Raised when grammar text or rule input cannot be parsed."""


class DuplicateSymbol(GrammarError):
    """Raised when a new start symbol would reuse a label already in the grammar."""


class SymbolSpaceExhausted(GrammarError):
    """Raised when the label allocator has no labels left."""


class GrammarDoesNotTerminate(GrammarError):
    """Raised when the start symbol cannot derive any finite terminal string."""


class SimplificationDidNotConverge(GrammarError):
    """Raised when unit-production removal exceeds its pass limit."""


class NotInCNF(GrammarError):
    """Raised when the recognizer is handed a grammar that is not in CNF."""
