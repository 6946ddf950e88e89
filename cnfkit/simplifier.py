"""
Simplifier
----------
Cleans a grammar in place, in three passes that each run to a fixed point:

- λ-production removal
- unit-production removal
- useless-symbol removal (non-terminating, then unreachable)

The result has no λ or unit productions, and every variable is reachable from
the start symbol and derives at least one terminal string.
"""

import logging
from collections import deque
from typing import Set

from cnfkit.errors import GrammarDoesNotTerminate, SimplificationDidNotConverge
from cnfkit.grammar import Grammar

log = logging.getLogger(__name__)

DEFAULT_MAX_PASSES = 1000


def nullable_variables(grammar: Grammar, exclude_original_start: bool = True) -> Set[str]:
    """
    Variables that derive λ.

    Seeded with variables that have a direct λ production. With
    `exclude_original_start`, the original start symbol is never added by the
    transitive step.
    """
    nullable = {n.label for n in grammar.nonterminals.values() if any(p.is_lambda for p in n)}

    changed = True
    while changed:
        changed = False
        for A, nt in grammar.nonterminals.items():
            if A in nullable:
                continue
            if exclude_original_start and A == grammar.original_start:
                continue
            for rule in nt.productions:
                if all(not s.is_terminal and s.label in nullable for s in rule.rhs):
                    nullable.add(A)
                    changed = True
                    break
    return nullable


def remove_lambda_productions(grammar: Grammar) -> Grammar:
    # siblings come from the full closure; the start symbol itself never gets a
    # λ rule, whether λ is in the language is kept on the grammar instead
    nullable = nullable_variables(grammar, exclude_original_start=False)
    if grammar.start in nullable:
        grammar.accepts_empty = True

    if not nullable:
        return grammar
    log.debug("Nullable variables: %s", sorted(nullable))

    for production in grammar.productions():
        if production.is_lambda:
            grammar.nonterminals[production.lhs].remove_production(production)

    # every new sibling is itself scanned, so pending acts as a worklist
    pending = deque(grammar.productions())
    while pending:
        production = pending.popleft()
        if len(production.rhs) < 2:
            continue
        owner = grammar.nonterminals[production.lhs]
        for i, sym in enumerate(production.rhs):
            if sym.is_terminal or sym.label not in nullable:
                continue
            rhs = production.rhs[:i] + production.rhs[i + 1:]
            if owner.add_production(rhs):
                pending.append(owner.productions[-1])
    return grammar


def unit_productions(grammar: Grammar):
    return [p for p in grammar.productions() if p.is_unit]


def remove_unit_productions(grammar: Grammar, max_passes: int = DEFAULT_MAX_PASSES) -> Grammar:
    units = unit_productions(grammar)
    passes = 0
    while units:
        passes += 1
        if passes > max_passes:
            raise SimplificationDidNotConverge(
                f"Unit-production removal did not converge after {max_passes} passes."
            )
        for unit in units:
            owner = grammar.nonterminals[unit.lhs]
            if unit not in owner.productions:
                continue
            target = grammar.nonterminals.get(unit.rhs[0].label)
            if target is not None:
                # read the target's rules before the unit rule is deleted
                for rule in list(target.productions):
                    if rule.is_unit and rule.rhs[0].label == owner.label:
                        continue
                    owner.add_production(rule.rhs)
            owner.remove_production(unit)
        units = unit_productions(grammar)
    log.debug("Unit productions removed in %d passes", passes)
    return grammar


def terminating_variables(grammar: Grammar) -> Set[str]:
    """Variables that derive at least one finite terminal string."""
    terminating: Set[str] = set()
    changed = True
    while changed:
        changed = False
        for A, nt in grammar.nonterminals.items():
            if A in terminating:
                continue
            for rule in nt.productions:
                if all(s.is_terminal or s.label in terminating for s in rule.rhs):
                    terminating.add(A)
                    changed = True
                    break
    return terminating


def reachable_variables(grammar: Grammar) -> Set[str]:
    """Breadth-first walk from the start symbol."""
    visited = {grammar.start}
    queue = deque([grammar.start])
    while queue:
        nt = grammar.nonterminals.get(queue.popleft())
        if nt is None:
            continue
        for rule in nt.productions:
            for label in rule.nonterminals():
                if label not in visited and label in grammar.nonterminals:
                    visited.add(label)
                    queue.append(label)
    return visited


def remove_useless_symbols(grammar: Grammar) -> Grammar:
    terminating = terminating_variables(grammar)
    if grammar.start not in terminating:
        raise GrammarDoesNotTerminate(
            f"This grammar does not terminate on start symbol: {grammar.start}."
        )
    for label in list(grammar.nonterminals):
        if label not in terminating:
            log.debug("Removing non-terminating variable %s", label)
            grammar.remove_nonterminal(label)

    reachable = reachable_variables(grammar)
    for label in list(grammar.nonterminals):
        if label not in reachable:
            log.debug("Removing unreachable variable %s", label)
            grammar.remove_nonterminal(label)

    # drop terminals no production uses any more
    used = {s.label for p in grammar.productions() for s in p.rhs if s.is_terminal}
    grammar.terminals = {t: None for t in grammar.terminals if t in used}
    return grammar


def simplify(grammar: Grammar, max_passes: int = DEFAULT_MAX_PASSES) -> Grammar:
    """Run the three simplification passes in order, in place."""
    remove_lambda_productions(grammar)
    remove_unit_productions(grammar, max_passes=max_passes)
    remove_useless_symbols(grammar)
    log.info("Simplified grammar: %d variables, %d productions",
             len(grammar.nonterminals), len(grammar.productions()))
    return grammar
