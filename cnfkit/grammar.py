"""
Grammar Model
-------------
The shared substrate the simplifier, CNF converter and CYK recognizer work on.

- Symbol: an immutable (kind, label) pair, terminal or non-terminal.
- Production: one right-hand side owned by a non-terminal. The RHS is a tuple
  of Symbols; the empty tuple is the empty string (λ).
- NonTerminal: a label and its ordered, duplicate-free productions.
- Grammar: start symbol, ordered terminals, ordered non-terminals.

Right-hand sides are immutable tuples, so rewriting a production replaces it
in its owner's list rather than editing it in place. Callers that mutate the
grammar while walking it iterate over list(...) snapshots.
"""

import copy
import itertools
import logging
import string
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from cnfkit.errors import DuplicateSymbol, SymbolSpaceExhausted

log = logging.getLogger(__name__)

LAMBDA = "λ"
EPSILON_MARKERS = ("λ", "ε")
ARROW = "->"


def is_variable(sym: str) -> bool:
    """Return True if the label names a non-terminal (starts with an uppercase letter)."""
    return bool(sym) and sym[0].isupper()


class SymbolKind(Enum):
    TERMINAL = "terminal"
    NONTERMINAL = "nonterminal"


@dataclass(frozen=True)
class Symbol:
    kind: SymbolKind
    label: str

    @property
    def is_terminal(self) -> bool:
        return self.kind is SymbolKind.TERMINAL

    def __str__(self):
        return self.label


def terminal(label: str) -> Symbol:
    return Symbol(SymbolKind.TERMINAL, label)


def nonterminal(label: str) -> Symbol:
    return Symbol(SymbolKind.NONTERMINAL, label)


def classify(label: str) -> Symbol:
    """Turn a raw label into a Symbol using the uppercase-means-variable convention."""
    return nonterminal(label) if is_variable(label) else terminal(label)


Expression = Tuple[Symbol, ...]


@dataclass(frozen=True)
class Production:
    lhs: str
    rhs: Expression

    @property
    def is_lambda(self) -> bool:
        return len(self.rhs) == 0

    @property
    def is_unit(self) -> bool:
        return len(self.rhs) == 1 and not self.rhs[0].is_terminal

    def satisfies_cnf(self) -> bool:
        """True for a single terminal or exactly two non-terminals."""
        if len(self.rhs) == 1:
            return self.rhs[0].is_terminal
        return len(self.rhs) == 2 and not any(s.is_terminal for s in self.rhs)

    def nonterminals(self) -> List[str]:
        return [s.label for s in self.rhs if not s.is_terminal]

    def mentions(self, label: str) -> bool:
        return any(not s.is_terminal and s.label == label for s in self.rhs)

    def expression(self) -> str:
        if self.is_lambda:
            return LAMBDA
        # multi-character labels need a separator to stay readable
        sep = " " if any(len(s.label) > 1 for s in self.rhs) else ""
        return sep.join(s.label for s in self.rhs)

    def __str__(self):
        return f"{self.lhs} {ARROW} {self.expression()}"


class NonTerminal:
    """A non-terminal label and its productions (set semantics, insertion order kept)."""

    def __init__(self, label: str):
        self.label = label
        self.productions: List[Production] = []

    @property
    def symbol(self) -> Symbol:
        return nonterminal(self.label)

    def has(self, rhs: Sequence[Symbol]) -> bool:
        rhs = tuple(rhs)
        return any(p.rhs == rhs for p in self.productions)

    def add_production(self, rhs: Sequence[Symbol]) -> bool:
        """Add a right-hand side. Returns False if an equal one already exists."""
        rhs = tuple(rhs)
        if self.has(rhs):
            return False
        self.productions.append(Production(self.label, rhs))
        return True

    def remove_production(self, production: Production) -> bool:
        if production in self.productions:
            self.productions.remove(production)
            return True
        return False

    def replace_production(self, production: Production, rhs: Sequence[Symbol]) -> Optional[Production]:
        """
        Swap a production's right-hand side, keeping its position.

        If the new RHS duplicates a sibling, the production is dropped and None
        is returned.
        """
        rhs = tuple(rhs)
        index = self.productions.index(production)
        if rhs != production.rhs and self.has(rhs):
            del self.productions[index]
            return None
        replacement = Production(self.label, rhs)
        self.productions[index] = replacement
        return replacement

    def expressions(self) -> str:
        return " | ".join(p.expression() for p in self.productions)

    def __iter__(self) -> Iterator[Production]:
        return iter(self.productions)

    def __len__(self):
        return len(self.productions)

    def __repr__(self):
        return f"NonTerminal({self.label!r}, {[p.expression() for p in self.productions]!r})"


class Grammar:
    """
    A context-free grammar.

    Parameters
    ----------
    start : str
        Label of the start symbol.
    bounded_labels : bool
        If True, fresh labels are limited to the single letters A..Z and
        SymbolSpaceExhausted is raised once they are all taken.
    """

    def __init__(self, start: str = "S", bounded_labels: bool = False):
        self.start = start
        self.original_start = start
        self.bounded_labels = bounded_labels
        # dicts used as ordered sets
        self.terminals: Dict[str, None] = {}
        self.nonterminals: Dict[str, NonTerminal] = {}
        # decided by the simplifier before λ-productions are dropped
        self.accepts_empty = False

    # ------------------------------------------------------------------
    # Symbol table
    # ------------------------------------------------------------------
    def add_terminal(self, label: str) -> None:
        self.terminals.setdefault(label, None)

    def add_nonterminal(self, label: str) -> NonTerminal:
        existing = self.nonterminals.get(label)
        if existing is not None:
            return existing
        created = NonTerminal(label)
        self.nonterminals[label] = created
        return created

    def replace_start(self, new_label: str) -> NonTerminal:
        """
        Introduce a new start symbol deriving the current one.

        The new start is placed first so renderings stay stable.
        """
        if new_label in self.nonterminals or new_label in self.terminals:
            raise DuplicateSymbol(f"Grammar already contains the symbol '{new_label}'.")
        new_start = NonTerminal(new_label)
        new_start.add_production((nonterminal(self.start),))
        self.nonterminals = {new_label: new_start, **self.nonterminals}
        log.debug("Replaced start symbol %s with %s", self.start, new_label)
        self.start = new_label
        return new_start

    def _label_candidates(self) -> Iterable[str]:
        yield from string.ascii_uppercase
        if self.bounded_labels:
            return
        for n in itertools.count(1):
            yield f"X{n}"

    def next_unused_label(self) -> str:
        """Return the first label, in a fixed order, not used by any symbol."""
        for label in self._label_candidates():
            if label not in self.nonterminals and label not in self.terminals:
                return label
        raise SymbolSpaceExhausted("No available non-terminal labels left.")

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------
    def load_rule(self, label: str, right_hand_sides: Iterable[Sequence[str]]) -> NonTerminal:
        """
        Register the productions of one source rule.

        Each right-hand side is a sequence of labels. Uppercase-initial labels
        are non-terminals, everything else is a terminal; an empty sequence or
        a lone λ/ε marker is the empty string.
        """
        owner = self.add_nonterminal(label)
        for rhs in right_hand_sides:
            labels = [sym for sym in rhs if sym not in EPSILON_MARKERS]
            symbols = []
            for sym in labels:
                symbol = classify(sym)
                if symbol.is_terminal:
                    self.add_terminal(sym)
                else:
                    self.add_nonterminal(sym)
                symbols.append(symbol)
            owner.add_production(symbols)
        return owner

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def productions(self) -> List[Production]:
        """Snapshot of every production, in display order."""
        return [p for n in self.nonterminals.values() for p in n.productions]

    def productions_mentioning(self, label: str) -> List[Production]:
        return [p for p in self.productions() if p.mentions(label)]

    def remove_nonterminal(self, label: str) -> None:
        """Delete a non-terminal and every production that refers to it."""
        for production in self.productions_mentioning(label):
            self.nonterminals[production.lhs].remove_production(production)
        self.nonterminals.pop(label, None)

    def is_cnf(self) -> bool:
        return all(p.satisfies_cnf() for p in self.productions())

    def copy(self) -> "Grammar":
        return copy.deepcopy(self)

    def render(self) -> str:
        """Human-readable listing, one non-terminal per line."""
        lines = []
        for n in self.nonterminals.values():
            lines.append(f"{n.label} {ARROW} {n.expressions()}")
        return "\n".join(lines) + ("\n" if lines else "")

    def to_dict(self) -> Dict[str, List[List[str]]]:
        """Plain mapping label -> list of label lists, the shape the HTTP layer returns."""
        return {
            n.label: [[s.label for s in p.rhs] or [LAMBDA] for p in n.productions]
            for n in self.nonterminals.values()
        }

    def __str__(self):
        return self.render()
