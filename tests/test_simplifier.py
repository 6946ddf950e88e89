import pytest

from cnfkit.errors import GrammarDoesNotTerminate, SimplificationDidNotConverge
from cnfkit.simplifier import (
    nullable_variables,
    reachable_variables,
    remove_lambda_productions,
    remove_unit_productions,
    remove_useless_symbols,
    simplify,
    terminating_variables,
)

from conftest import ANBN, EQUAL_AB, EXPRESSIONS, NULLABLE_START, PARENS, TEXTBOOK


def expressions(g, label):
    return [p.expression() for p in g.nonterminals[label]]


def test_nullable_never_adds_original_start(grammar):
    g = grammar("S -> AB\nA -> a | λ\nB -> b | λ")
    assert nullable_variables(g) == {"A", "B"}
    assert nullable_variables(g, exclude_original_start=False) == {"S", "A", "B"}


def test_direct_lambda_on_start_is_nullable(grammar):
    g = grammar(ANBN)
    assert nullable_variables(g) == {"S"}


def test_lambda_removal_adds_one_sibling_per_occurrence(grammar):
    g = grammar("S -> aAAb\nA -> a | λ")
    remove_lambda_productions(g)
    assert expressions(g, "S") == ["aAAb", "aAb", "ab"]
    assert expressions(g, "A") == ["a"]


def test_lambda_removal_deletes_indirectly_nullable_start(grammar):
    g = grammar(NULLABLE_START)
    remove_lambda_productions(g)
    assert g.accepts_empty
    assert expressions(g, "S") == ["AB", "cSd", "B", "A", "cd"]


def test_lambda_removal_records_empty_word(grammar):
    g = grammar(ANBN)
    remove_lambda_productions(g)
    assert g.accepts_empty
    assert expressions(g, "S") == ["aSb", "ab"]


def test_lambda_removal_without_nullables(grammar):
    g = grammar(EQUAL_AB)
    before = g.render()
    remove_lambda_productions(g)
    assert g.render() == before
    assert not g.accepts_empty


def test_unit_cycle_is_resolved(grammar):
    g = grammar("S -> A | a\nA -> S | b")
    remove_unit_productions(g)
    assert expressions(g, "S") == ["a", "b"]
    assert expressions(g, "A") == ["b", "a"]
    assert not any(p.is_unit for p in g.productions())


def test_unit_chain(grammar):
    g = grammar(EXPRESSIONS)
    remove_unit_productions(g)
    assert not any(p.is_unit for p in g.productions())
    assert set(expressions(g, "E")) == {"E+T", "T*F", "(E)", "a"}


def test_unit_removal_pass_limit(grammar):
    g = grammar("S -> A\nA -> a")
    with pytest.raises(SimplificationDidNotConverge):
        remove_unit_productions(g, max_passes=0)


def test_useless_symbols_removed(grammar):
    g = grammar("S -> AB | a\nA -> a\nB -> bB\nC -> c")
    assert terminating_variables(g) == {"S", "A", "C"}
    remove_useless_symbols(g)
    assert g.render() == "S -> a\n"
    assert list(g.terminals) == ["a"]


def test_undefined_variable_is_useless(grammar):
    g = grammar("S -> aU | b")
    simplify(g)
    assert g.render() == "S -> b\n"


def test_reachability(grammar):
    g = grammar("S -> aA\nA -> a\nB -> b")
    assert reachable_variables(g) == {"S", "A"}


def test_start_must_terminate(grammar):
    g = grammar("S -> aS | A\nA -> bA")
    with pytest.raises(GrammarDoesNotTerminate):
        simplify(g)


@pytest.mark.parametrize("text", [ANBN, TEXTBOOK, PARENS, EQUAL_AB, EXPRESSIONS])
def test_simplify_is_idempotent(grammar, text):
    g = grammar(text)
    once = simplify(g).render()
    assert simplify(g).render() == once


@pytest.mark.parametrize("text", [ANBN, TEXTBOOK, PARENS, EQUAL_AB, EXPRESSIONS])
def test_simplified_grammar_is_clean(grammar, text):
    g = simplify(grammar(text))
    assert not any(p.is_lambda or p.is_unit for p in g.productions())
    assert set(g.nonterminals) == reachable_variables(g)
    assert set(g.nonterminals) == terminating_variables(g)
    for p in g.productions():
        assert all(s.label in g.nonterminals for s in p.rhs if not s.is_terminal)
        assert all(s.label in g.terminals for s in p.rhs if s.is_terminal)
