"""
CNF Converter
-------------
Converts a grammar into Chomsky Normal Form, in place.

- Isolates the start symbol if it appears on a right-hand side
- Simplifies (no λ, no unit productions, no useless symbols)
- Lifts terminals out of long rules (A -> aB becomes A -> XB ; X -> a)
- Binarizes rules of length 3 or more

Variables with a single rule already in CNF ("standalones") are reused
whenever a rewrite needs the same right-hand side, so the grammar grows as
little as possible.
"""

import logging
from typing import Dict, List, Optional, Tuple

from cnfkit.grammar import Expression, Grammar, Symbol, nonterminal
from cnfkit.simplifier import DEFAULT_MAX_PASSES, simplify

log = logging.getLogger(__name__)


def start_is_referenced(grammar: Grammar) -> bool:
    return any(p.mentions(grammar.start) for p in grammar.productions())


def find_standalones(grammar: Grammar) -> Dict[Expression, str]:
    """Map each single CNF rule to the variable that owns nothing but it."""
    standalones: Dict[Expression, str] = {}
    for nt in grammar.nonterminals.values():
        if nt.label == grammar.start:
            continue
        if len(nt.productions) == 1 and nt.productions[0].satisfies_cnf():
            standalones.setdefault(nt.productions[0].rhs, nt.label)
    return standalones


def _standalone_for(grammar: Grammar, rhs: Expression, standalones: Dict[Expression, str]) -> Symbol:
    label = standalones.get(rhs)
    if label is None:
        label = grammar.next_unused_label()
        grammar.add_nonterminal(label).add_production(rhs)
        standalones[rhs] = label
        log.debug("New variable %s -> %s", label, "".join(s.label for s in rhs))
    return nonterminal(label)


def _isolate_terminals(grammar: Grammar, rhs: Expression, standalones: Dict[Expression, str]) -> Expression:
    return tuple(
        _standalone_for(grammar, (sym,), standalones) if sym.is_terminal else sym
        for sym in rhs
    )


def _find_pair(rhs: Expression, pair: Expression) -> int:
    for i in range(len(rhs) - 1):
        if rhs[i:i + 2] == pair:
            return i
    return -1


def _choose_pair(rhs: Expression, standalones: Dict[Expression, str]) -> Tuple[int, Expression]:
    """
    Pick the adjacent pair to collapse next.

    Candidates in priority order: symbols 1&2, the pair 1&3 wherever it occurs
    adjacently, symbols 2&3. The first candidate that an existing standalone
    already derives wins; otherwise 1&2.
    """
    c1, c2, c3 = rhs[:3]
    candidates: List[Tuple[int, Expression]] = []
    for pair in ((c1, c2), (c1, c3), (c2, c3)):
        index = _find_pair(rhs, pair)
        if index >= 0:
            candidates.append((index, pair))
    for index, pair in candidates:
        if pair in standalones:
            return index, pair
    return 0, (c1, c2)


def _binarize(grammar: Grammar, rhs: Expression, standalones: Dict[Expression, str]) -> Expression:
    while len(rhs) > 2:
        index, pair = _choose_pair(rhs, standalones)
        replacement = _standalone_for(grammar, pair, standalones)
        rhs = rhs[:index] + (replacement,) + rhs[index + 2:]
    return rhs


def convert_to_cnf(grammar: Grammar, new_start: Optional[str] = None,
                   max_passes: int = DEFAULT_MAX_PASSES) -> Grammar:
    """
    Perform full CNF conversion in place.

    Parameters
    ----------
    grammar : Grammar
        Grammar to convert, normally already simplified.
    new_start : str, optional
        Label for the new start symbol if the current one has to be isolated.
        Defaults to the next unused label.

    Raises
    ------
    DuplicateSymbol if `new_start` is already in use, SymbolSpaceExhausted if
    no fresh label is available, GrammarDoesNotTerminate from simplification.
    """
    if start_is_referenced(grammar):
        grammar.replace_start(new_start or grammar.next_unused_label())

    simplify(grammar, max_passes=max_passes)

    standalones = find_standalones(grammar)

    # variables minted below are already in CNF, so a snapshot is enough
    for nt in list(grammar.nonterminals.values()):
        for production in list(nt.productions):
            if production.satisfies_cnf():
                continue
            rhs = _isolate_terminals(grammar, production.rhs, standalones)
            rhs = _binarize(grammar, rhs, standalones)
            nt.replace_production(production, rhs)

    log.info("CNF grammar: %d variables, %d productions",
             len(grammar.nonterminals), len(grammar.productions()))
    return grammar
