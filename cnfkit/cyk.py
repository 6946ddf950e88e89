"""
CYK Algorithm Implementation
----------------------------
Decides membership of a word in the language of a CNF grammar.

table[l - 1][s][i] is True when variable number i derives the substring of
length l starting at offset s. The table is private to each call and the
grammar is only read, so one grammar can serve many concurrent queries.
"""

import logging
from typing import Dict, List, Sequence, Tuple, Union

from cnfkit.errors import NotInCNF
from cnfkit.grammar import Grammar

log = logging.getLogger(__name__)

Word = Union[str, Sequence[str]]


def _index_rules(grammar: Grammar) -> Tuple[Dict[str, int], Dict[str, List[int]], List[Tuple[int, int, int]]]:
    """Number the variables and split the rules into A -> a and A -> B C."""
    index = {label: i for i, label in enumerate(grammar.nonterminals)}
    terminal_rules: Dict[str, List[int]] = {}
    binary_rules: List[Tuple[int, int, int]] = []
    for production in grammar.productions():
        if not production.satisfies_cnf():
            raise NotInCNF(f"Production not in CNF: {production}")
        A = index[production.lhs]
        if len(production.rhs) == 1:
            terminal_rules.setdefault(production.rhs[0].label, []).append(A)
        else:
            B, C = (index[s.label] for s in production.rhs)
            binary_rules.append((A, B, C))
    return index, terminal_rules, binary_rules


def run_cyk(grammar: Grammar, word: Word):
    """
    Execute the CYK algorithm on a CNF grammar.

    Parameters
    ----------
    grammar: Grammar
        A grammar in CNF (see convert_to_cnf).
    word: str or list[str]
        A string is read one terminal per character.

    Returns
    -------
    {
        "table": CYK_table,
        "success": bool
    }
    """
    tokens = list(word)
    n = len(tokens)
    index, terminal_rules, binary_rules = _index_rules(grammar)

    if n == 0:
        # CNF has no λ rules; the verdict was recorded during simplification
        return {"table": [], "success": grammar.accepts_empty}

    unknown = [t for t in tokens if t not in terminal_rules]
    if unknown:
        log.debug("Symbols outside the grammar's alphabet: %s", unknown)
        return {"table": [], "success": False}

    k = len(index)
    table = [[[False] * k for _ in range(n - length + 1)] for length in range(1, n + 1)]

    # Substrings of length 1
    for s, tok in enumerate(tokens):
        for A in terminal_rules[tok]:
            table[0][s][A] = True

    # Substrings of length >= 2, split into lengths p and l - p
    for length in range(2, n + 1):
        for s in range(n - length + 1):
            cell = table[length - 1][s]
            for p in range(1, length):
                left = table[p - 1][s]
                right = table[length - p - 1][s + p]
                for A, B, C in binary_rules:
                    if left[B] and right[C]:
                        cell[A] = True

    start = index.get(grammar.start)
    success = start is not None and table[n - 1][0][start]
    return {"table": table, "success": success}


def recognize(grammar: Grammar, word: Word) -> bool:
    """True if `word` is in the language of the CNF grammar."""
    return run_cyk(grammar, word)["success"]
