import logging
from pathlib import Path

import pytest

from packages.semgrep_adapter import load_output
from packages.semgrep_adapter.load_output import OutputDeserializationError, deserialize

FIXTURE = Path(__file__).resolve().parents[1] / "fixtures" / "juice-shop-results.json"


def test_load_output_reads_fixture():
    output = load_output.load_output(FIXTURE)
    assert output.version == "1.42.0"
    assert len(output.results) == 4
    assert output.results[0].rule_id.startswith("yaml.github-actions")
    assert output.results[2].file_path == "routes/fileServer.ts"
    assert output.paths.scanned[-1] == "server.ts"


def test_deserialize_accepts_text_and_bytes():
    payload = '{"version": "1.35.0", "results": [], "errors": []}'
    assert deserialize(payload) == deserialize(payload.encode("utf-8"))


def test_deserialize_rejects_invalid_json():
    with pytest.raises(OutputDeserializationError):
        deserialize("{not json")


def test_deserialize_rejects_wrong_shape():
    with pytest.raises(ValueError):
        deserialize('{"results": [{"check_id": "r"}]}')


def test_load_output_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_output.load_output(tmp_path / "missing.json")


def test_scanner_errors_are_logged(caplog):
    payload = '{"results": [], "errors": [{"type": ["PartialParsing", []], "level": "warn", "message": "Syntax error"}]}'
    with caplog.at_level(logging.WARNING, logger="packages.semgrep_adapter.load_output"):
        output = deserialize(payload)
    assert len(output.errors) == 1
    assert output.errors[0].level == "warn"
    assert "1 error(s)" in caplog.text
