import logging

from flask import Flask, request, jsonify
from flask_cors import CORS

from cnfkit.cfg_parser import parse_cfg, parse_grammar_text
from cnfkit.cnf_converter import convert_to_cnf
from cnfkit.cyk import recognize
from cnfkit.errors import GrammarError
from cnfkit.generator import generate_strings
from cnfkit.grammar import LAMBDA
from cnfkit.simplifier import simplify

log = logging.getLogger(__name__)

app = Flask(__name__)
app.config.from_mapping(
    START_REPLACEMENT_LABEL=None,   # None: next unused label
    BOUNDED_LABELS=False,           # True: only A..Z may be allocated
    MAX_INPUT_LENGTH=200,
    GENERATE_COUNT=10,
    UNIT_PASS_LIMIT=1000,
    LOG_LEVEL="DEBUG",              # applied by configure_logging()
)
# e.g. CNFKIT_MAX_INPUT_LENGTH=500
app.config.from_prefixed_env("CNFKIT")
CORS(app)

def configure_logging():
    logging.basicConfig(level=app.config["LOG_LEVEL"])


def _json_body():
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


# Global stored grammar state
GLOBAL_ORIGINAL_CFG = None
GLOBAL_CNF = None
GLOBAL_TOKENIZED = False


def _build_grammar(data):
    tokenized = bool(data.get("tokenized", False))
    bounded = app.config["BOUNDED_LABELS"]
    if data.get("grammar") is not None:
        return parse_grammar_text(data["grammar"], start=data.get("start") or None,
                                  tokenized=tokenized, bounded_labels=bounded), tokenized
    return parse_cfg(data.get("start", "").strip(), data.get("productions", []),
                     tokenized=tokenized, bounded_labels=bounded), tokenized


# =====================================================================
#  1. SET GRAMMAR
# =====================================================================
@app.route("/set_grammar", methods=["POST"])
def set_grammar():
    global GLOBAL_ORIGINAL_CFG, GLOBAL_CNF, GLOBAL_TOKENIZED

    data = _json_body()

    try:
        # 1. Parse raw CFG
        original_cfg, tokenized = _build_grammar(data)

        # 2. Simplify, then convert to CNF
        cnf = original_cfg.copy()
        limit = app.config["UNIT_PASS_LIMIT"]
        simplify(cnf, max_passes=limit)
        convert_to_cnf(cnf, app.config["START_REPLACEMENT_LABEL"], max_passes=limit)

        GLOBAL_ORIGINAL_CFG = original_cfg
        GLOBAL_CNF = cnf
        GLOBAL_TOKENIZED = tokenized

        return jsonify({
            "success": True,
            "message": "Grammar successfully parsed and converted to CNF.",
            "start": cnf.start,
            "cnf": cnf.to_dict(),
            "rendered": cnf.render()
        })

    except GrammarError as e:
        log.info("Rejected grammar: %s", e)
        return jsonify({
            "success": False,
            "message": f"Grammar Error: {str(e)}"
        })


# =====================================================================
#  2. SHOW GRAMMAR
# =====================================================================
@app.route("/grammar")
def show_grammar():
    if GLOBAL_CNF is None:
        return jsonify({"success": False, "message": "Grammar is not set."})

    return jsonify({
        "success": True,
        "original": GLOBAL_ORIGINAL_CFG.render(),
        "cnf": GLOBAL_CNF.render(),
        "accepts_empty": GLOBAL_CNF.accepts_empty
    })


# =====================================================================
#  3. GENERATE STRINGS
# =====================================================================
@app.route("/generate", methods=["POST"])
def generate():
    if GLOBAL_ORIGINAL_CFG is None:
        return jsonify({"success": False, "message": "Grammar is not set."})

    data = _json_body()
    count = data.get("count", app.config["GENERATE_COUNT"])
    if isinstance(count, bool) or not isinstance(count, int) or count < 1:
        return jsonify({"success": False, "message": "'count' must be a positive integer."})
    sep = " " if GLOBAL_TOKENIZED else ""
    generated = generate_strings(GLOBAL_ORIGINAL_CFG, max_strings=count, sep=sep)
    return jsonify({"success": True, "generated": sorted(generated)})


# =====================================================================
#  4. CYK VALIDATION
# =====================================================================
@app.route("/validate", methods=["POST"])
def validate():
    if GLOBAL_CNF is None:
        return jsonify({
            "success": False,
            "message": "Please set a grammar first."
        })

    data = _json_body()
    tokens = data.get("tokens")
    string_value = data.get("string", "")
    if tokens is not None:
        if not isinstance(tokens, list) or not all(isinstance(t, str) for t in tokens):
            return jsonify({"success": False, "message": "'tokens' must be a list of strings."})
        word = [t for t in tokens if t]
    elif not isinstance(string_value, str):
        return jsonify({"success": False, "message": "'string' must be a string."})
    elif GLOBAL_TOKENIZED:
        word = [t for t in string_value.split() if t]
    else:
        word = "".join(string_value.split())

    if len(word) > app.config["MAX_INPUT_LENGTH"]:
        return jsonify({
            "success": False,
            "message": f"Input longer than {app.config['MAX_INPUT_LENGTH']} symbols."
        })

    accepted = recognize(GLOBAL_CNF, word)
    shown = (" ".join(word) if GLOBAL_TOKENIZED else "".join(word)) or LAMBDA
    return jsonify({
        "success": True,
        "valid": accepted,
        "message": f"'{shown}' is {'' if accepted else 'NOT '}derivable."
    })


# =====================================================================
#  HEALTH CHECK
# =====================================================================
@app.route("/ping")
def ping():
    return jsonify({"status": "OK", "message": "Server running"})


# =====================================================================
#  RUN
# =====================================================================
if __name__ == "__main__":
    configure_logging()
    app.run(debug=True)
