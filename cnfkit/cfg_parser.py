import logging
import re
from typing import Any, Iterable, List, Optional

from cnfkit.errors import CFGError
from cnfkit.grammar import EPSILON_MARKERS, Grammar, is_variable

log = logging.getLogger(__name__)

# Left-hand side of a text rule: "S -> ..." or "S → ...".
_RULE_RE = re.compile(r"^\s*(?P<lhs>\S+)\s*(?:->|→)\s*(?P<rhs>.*)$")

# Multi-character variable names accepted in tokenized mode (S, NP, Det, X1, S').
_VAR_RE = re.compile(r"^[A-Z][A-Za-z0-9_]*'?$")


def _split_alternative(alternative: str, tokenized: bool) -> List[str]:
    """
    Split one alternative into symbol labels.

    In the default mode every non-blank character is its own symbol ("aSb" is
    a, S, b). In tokenized mode symbols are whitespace separated ("Det N").
    """
    if tokenized:
        return [tok for tok in alternative.split() if tok]
    return [ch for ch in alternative if not ch.isspace()]


def _parse_rhs_string(rhs_str: Optional[str], tokenized: bool = False) -> List[List[str]]:
    """
    Parse a RHS string like "aSb | λ" into a list of rules:
    [['a', 'S', 'b'], []]
    """
    if rhs_str is None:
        return []
    rules = []
    for part in rhs_str.split("|"):
        symbols = _split_alternative(part.strip(), tokenized)
        # an empty alternative is the empty string
        rules.append([s for s in symbols if s not in EPSILON_MARKERS])
    return rules


def _check_lhs(lhs: Any, tokenized: bool) -> str:
    if not lhs or not isinstance(lhs, str):
        raise CFGError(f"Invalid LHS value: {lhs!r}")
    lhs = lhs.strip()
    valid = _VAR_RE.match(lhs) if tokenized else (len(lhs) == 1 and is_variable(lhs))
    if not valid:
        raise CFGError(
            f"Invalid variable format on left-hand side: '{lhs}'. "
            "Variables must start with an uppercase letter."
        )
    return lhs


def _rules_from_entry(lhs: str, rhs: Any, tokenized: bool) -> List[List[str]]:
    if isinstance(rhs, str):
        return _parse_rhs_string(rhs, tokenized)
    if isinstance(rhs, list):
        if rhs and all(isinstance(x, list) for x in rhs):
            # list of rules, each a list of symbols
            return [[s.strip() for s in r if isinstance(s, str) and s.strip()] for r in rhs]
        if all(isinstance(x, str) for x in rhs):
            # list of alternatives, each a string
            rules = []
            for alternative in rhs:
                rules.extend(_parse_rhs_string(alternative, tokenized))
            return rules
    raise CFGError(f"Unsupported RHS for '{lhs}': {type(rhs).__name__}")


def _warn_undeclared(grammar: Grammar, declared: Iterable[str]) -> None:
    declared = set(declared)
    for label in grammar.nonterminals:
        if label not in declared:
            log.warning("Variable '%s' is used but never defined; it will be removed as useless", label)


def parse_grammar_text(text: str, start: Optional[str] = None, tokenized: bool = False,
                       bounded_labels: bool = False) -> Grammar:
    """
    Parse grammar text, one rule per line:

        S -> aSb | λ
        A → a | B

    The first rule's left-hand side is the start symbol unless `start` is
    given. Blank lines and lines starting with '#' are ignored.

    Raises
    ------
    CFGError on malformed input.
    """
    if text is None or not text.strip():
        raise CFGError("No production rules defined. Add at least one rule.")

    grammar: Optional[Grammar] = None
    declared: List[str] = []
    for lineno, line in enumerate(text.splitlines(), 1):
        if not line.strip() or line.lstrip().startswith("#"):
            continue
        match = _RULE_RE.match(line)
        if not match:
            raise CFGError(f"Line {lineno}: expected 'A -> ...', got {line.strip()!r}")
        lhs = _check_lhs(match.group("lhs"), tokenized)
        if grammar is None:
            grammar = Grammar(start or lhs, bounded_labels=bounded_labels)
        grammar.load_rule(lhs, _parse_rhs_string(match.group("rhs"), tokenized))
        declared.append(lhs)

    if grammar is None:
        raise CFGError("No production rules defined. Add at least one rule.")
    if grammar.start not in declared:
        raise CFGError(f"Start variable '{grammar.start}' has no rules.")
    _warn_undeclared(grammar, declared)
    log.debug("Parsed grammar with %d variables:\n%s", len(grammar.nonterminals), grammar.render())
    return grammar


def parse_cfg(start_variable: str, productions: Any, tokenized: bool = False,
              bounded_labels: bool = False) -> Grammar:
    """
    Build a Grammar from structured rules.

    Expected input shapes
    ---------------------
    - a mapping: { "S": ["aSb", "λ"], "A": [["a"], ["B"]] }
    - or a list of dicts: [ { "lhs": "S", "rhs": "aSb | λ" }, ... ]

    Raises
    ------
    CFGError on invalid input.
    """
    if not start_variable or not isinstance(start_variable, str):
        raise CFGError("Start variable must be a non-empty string.")
    start_variable = _check_lhs(start_variable, tokenized)

    if isinstance(productions, dict):
        entries = list(productions.items())
    elif isinstance(productions, list):
        entries = []
        for entry in productions:
            if not isinstance(entry, dict):
                raise CFGError("Each production entry must be an object/dict with 'lhs' and 'rhs'.")
            entries.append((entry.get("lhs"), entry.get("rhs")))
    else:
        raise CFGError("Unsupported productions type. Provide a dict or a list of production entries.")

    if not entries:
        raise CFGError("No production rules defined. Add at least one rule.")

    grammar = Grammar(start_variable, bounded_labels=bounded_labels)
    # the start symbol is listed first regardless of input order
    grammar.add_nonterminal(start_variable)
    declared = []
    for lhs, rhs in entries:
        lhs = _check_lhs(lhs, tokenized)
        grammar.load_rule(lhs, _rules_from_entry(lhs, rhs, tokenized))
        declared.append(lhs)

    if start_variable not in declared:
        raise CFGError(f"Start variable '{start_variable}' has no rules.")
    _warn_undeclared(grammar, declared)
    return grammar
