"""
generator.py

Sentence generation for context-free grammars, working on any Grammar
(raw, simplified or CNF).

Functions:
- enumerate_words(grammar, max_length)
    Every terminal word of length <= max_length the grammar derives. Each
    variable's bounded language is grown to a fixed point, which copes with
    λ rules and unit cycles alike.

- derives(grammar, word)
    Brute-force membership through enumerate_words. Slow, but independent of
    CNF, so it is the reference the CYK recognizer is checked against.

- generate_one / generate_strings
    Random expansion, as in the interactive toolkit. Call random.seed(...)
    first for reproducible output.
"""

import logging
import random
from typing import Dict, List, Sequence, Set, Tuple, Union

from cnfkit.grammar import Grammar, Symbol

log = logging.getLogger(__name__)

Word = Tuple[str, ...]


def _concatenate(left: Set[Word], right: Set[Word], max_length: int) -> Set[Word]:
    return {a + b for a in left for b in right if len(a) + len(b) <= max_length}


def enumerate_words(grammar: Grammar, max_length: int) -> Set[Word]:
    """Collect every word of length <= max_length derivable from the start symbol."""
    words: Dict[str, Set[Word]] = {label: set() for label in grammar.nonterminals}
    changed = True
    while changed:
        changed = False
        for A, nt in grammar.nonterminals.items():
            for rule in nt.productions:
                found: Set[Word] = {()}
                for sym in rule.rhs:
                    part = {(sym.label,)} if sym.is_terminal else words.get(sym.label, set())
                    found = _concatenate(found, part, max_length)
                    if not found:
                        break
                if not found <= words[A]:
                    words[A] |= found
                    changed = True
    return words.get(grammar.start, set())


def enumerate_strings(grammar: Grammar, max_length: int, sep: str = "") -> List[str]:
    """Sorted list of derivable words, each joined with `sep`."""
    return sorted(sep.join(word) for word in enumerate_words(grammar, max_length))


def derives(grammar: Grammar, word: Union[str, Sequence[str]]) -> bool:
    tokens = tuple(word)
    return tokens in enumerate_words(grammar, len(tokens))


def generate_one(grammar: Grammar, symbol: Symbol, max_depth: int = 15,
                 current_depth: int = 0, sep: str = "") -> dict:
    """
    Recursively generate a string for `symbol` using `grammar`.

    Returns: {"string": str}
      - normal string for a terminal expansion (may be empty for λ).
      - {"string": "[...]"} if max_depth is exceeded (truncation marker).
    """
    if current_depth > max_depth:
        return {"string": "[...]"}

    if symbol.is_terminal:
        return {"string": symbol.label}

    nt = grammar.nonterminals.get(symbol.label)
    if nt is None or not nt.productions:
        return {"string": ""}

    rule = random.choice(nt.productions)

    parts: List[str] = []
    for sym in rule.rhs:
        res = generate_one(grammar, sym, max_depth=max_depth, current_depth=current_depth + 1, sep=sep)
        s = res.get("string", "")
        if s == "[...]":
            # propagate truncation immediately
            return {"string": "[...]"}
        if s != "":
            parts.append(s)

    return {"string": sep.join(parts)}


def generate_strings(grammar: Grammar, max_strings: int = 10, max_attempts: int = 50,
                     max_depth: int = 15, sep: str = "") -> Set[str]:
    """
    Generate up to `max_strings` unique strings from the start symbol.

    Truncated expansions are skipped. λ shows up as "".
    """
    start = grammar.nonterminals.get(grammar.start)
    if start is None:
        return set()

    generated: Set[str] = set()
    attempts = 0

    while attempts < max_attempts and len(generated) < max_strings:
        attempts += 1
        try:
            res = generate_one(grammar, start.symbol, max_depth=max_depth, sep=sep)
        except RecursionError:
            # extremely deep recursion, treat as truncation
            continue
        s = res.get("string", "")
        if s == "[...]":
            continue
        generated.add(s)

    log.debug("Generated %d strings in %d attempts", len(generated), attempts)
    return generated
