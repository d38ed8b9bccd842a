import json
import logging
import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DATA_DIR", str(ROOT / "data"))

from sessionguard.core.logging import JsonLogFormatter
from sessionguard.middlewares import credential_kind_ctx_var, principal_ctx_var, request_id_ctx_var


def _record(message, **extra):
    record = logging.LogRecord("sessionguard.api", logging.WARNING, __file__, 1, message, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_formatter_emits_json_with_context():
    request_token = request_id_ctx_var.set("req-1")
    principal_token = principal_ctx_var.set("user")
    kind_token = credential_kind_ctx_var.set("admin")
    try:
        line = JsonLogFormatter().format(
            _record("Session has been invalidated. Please log in again.", extra_data={"credential": "user"})
        )
    finally:
        request_id_ctx_var.reset(request_token)
        principal_ctx_var.reset(principal_token)
        credential_kind_ctx_var.reset(kind_token)

    payload = json.loads(line)
    assert payload["level"] == "WARNING"
    assert payload["logger"] == "sessionguard.api"
    assert payload["request_id"] == "req-1"
    assert payload["principal"] == "user"
    assert payload["credential_kind"] == "admin"
    assert payload["credential"] == "user"
    assert payload["timestamp"].endswith("Z")


def test_formatter_without_context_skips_optional_fields():
    payload = json.loads(JsonLogFormatter().format(_record("plain")))
    assert "request_id" not in payload
    assert "principal" not in payload
    assert "credential_kind" not in payload
    assert payload["message"] == "plain"
