import pytest

import app as webapp

from conftest import ANBN


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setattr(webapp, "GLOBAL_ORIGINAL_CFG", None)
    monkeypatch.setattr(webapp, "GLOBAL_CNF", None)
    monkeypatch.setattr(webapp, "GLOBAL_TOKENIZED", False)
    webapp.app.config["TESTING"] = True
    return webapp.app.test_client()


def test_ping(client):
    assert client.get("/ping").get_json()["status"] == "OK"


def test_validate_requires_grammar(client):
    body = client.post("/validate", json={"string": "ab"}).get_json()
    assert body["success"] is False


def test_set_grammar_and_validate(client):
    body = client.post("/set_grammar", json={"grammar": ANBN}).get_json()
    assert body["success"] is True
    assert body["start"] == "A"
    assert body["cnf"]["B"] == [["a"]]

    assert client.post("/validate", json={"string": "aabb"}).get_json()["valid"] is True
    assert client.post("/validate", json={"string": "a a b b"}).get_json()["valid"] is True
    assert client.post("/validate", json={"string": "aab"}).get_json()["valid"] is False
    empty = client.post("/validate", json={"string": ""}).get_json()
    assert empty["valid"] is True
    assert "λ" in empty["message"]


def test_set_grammar_structured(client):
    body = client.post("/set_grammar", json={
        "start": "S",
        "productions": [{"lhs": "S", "rhs": "NP VP"}, {"lhs": "NP", "rhs": "the dog"}, {"lhs": "VP", "rhs": "barks"}],
        "tokenized": True,
    }).get_json()
    assert body["success"] is True
    assert client.post("/validate", json={"string": "the dog barks"}).get_json()["valid"] is True
    assert client.post("/validate", json={"tokens": ["dog", "barks"]}).get_json()["valid"] is False


def test_grammar_error_is_reported(client):
    body = client.post("/set_grammar", json={"grammar": "S -> aS"}).get_json()
    assert body["success"] is False
    assert body["message"].startswith("Grammar Error:")
    assert client.get("/grammar").get_json()["success"] is False


def test_show_grammar(client):
    client.post("/set_grammar", json={"grammar": "S -> AB\nA -> a\nB -> b"})
    body = client.get("/grammar").get_json()
    assert body["original"] == "S -> AB\nA -> a\nB -> b\n"
    assert body["cnf"] == body["original"]
    assert body["accepts_empty"] is False


def test_generate(client):
    client.post("/set_grammar", json={"grammar": ANBN})
    body = client.post("/generate", json={"count": 3}).get_json()
    assert body["success"] is True
    assert all(s == "a" * (len(s) // 2) + "b" * (len(s) // 2) for s in body["generated"])


def test_input_length_limit(client):
    client.post("/set_grammar", json={"grammar": ANBN})
    webapp.app.config["MAX_INPUT_LENGTH"] = 4
    try:
        body = client.post("/validate", json={"string": "aaabbb"}).get_json()
    finally:
        webapp.app.config["MAX_INPUT_LENGTH"] = 200
    assert body["success"] is False


@pytest.mark.parametrize("count", ["3", 0, -2, 2.5, True, None])
def test_generate_rejects_bad_count(client, count):
    client.post("/set_grammar", json={"grammar": ANBN})
    response = client.post("/generate", json={"count": count})
    assert response.status_code == 200
    body = response.get_json()
    assert body["success"] is False
    assert "count" in body["message"]


@pytest.mark.parametrize("payload", [
    {"tokens": 5},
    {"tokens": "ab"},
    {"tokens": ["a", 1]},
    {"string": 12},
])
def test_validate_rejects_malformed_input(client, payload):
    client.post("/set_grammar", json={"grammar": ANBN})
    response = client.post("/validate", json=payload)
    assert response.status_code == 200
    assert response.get_json()["success"] is False


def test_non_object_body_is_ignored(client):
    client.post("/set_grammar", json={"grammar": ANBN})
    body = client.post("/validate", json=["ab"]).get_json()
    assert body["success"] is True
    assert body["valid"] is True


def test_configure_logging_uses_config_level(monkeypatch):
    calls = []
    monkeypatch.setattr(webapp.logging, "basicConfig", lambda **kwargs: calls.append(kwargs))
    monkeypatch.setitem(webapp.app.config, "LOG_LEVEL", "WARNING")
    webapp.configure_logging()
    assert calls == [{"level": "WARNING"}]
