from __future__ import annotations

import json
from pathlib import Path

from wise_extractor.pipeline import EXIT_INTERNAL, EXIT_OK, EXIT_REJECTED, main


SAMPLES = Path(__file__).resolve().parent / "samples"
EUR_TEXT = (SAMPLES / "wise_eur_statement.txt").read_text(encoding="utf-8")


def _write(tmp_path, text: str) -> str:
    path = tmp_path / "statement.txt"
    path.write_text(text, encoding="utf-8")
    return str(path)


def test_cli_prints_json_to_stdout(tmp_path, capsys):
    code = main([_write(tmp_path, EUR_TEXT)])
    captured = capsys.readouterr()

    assert code == EXIT_OK
    payload = json.loads(captured.out)
    assert set(payload) == {"currency", "dateRange", "transactions"}
    assert payload["currency"] == "EUR"
    assert payload["dateRange"] == {"from": "2025-11-01", "to": "2025-11-30"}
    assert len(payload["transactions"]) == 15
    assert payload["transactions"][0]["outgoing"] == 25.51
    assert "Transacciones detectadas: 15" in captured.err


def test_cli_writes_output_file(tmp_path, capsys):
    out = tmp_path / "out" / "result.json"
    code = main([_write(tmp_path, EUR_TEXT), "--out", str(out)])
    captured = capsys.readouterr()

    assert code == EXIT_OK
    assert captured.out == ""
    payload = json.loads(out.read_text(encoding="utf-8"))
    assert payload["transactions"][-1]["reference"] == "CARD-3072509862"


def test_cli_rejects_invalid_statement(tmp_path, capsys):
    code = main([_write(tmp_path, "Hello, this is a grocery list\nmilk 2.50\n")])
    captured = capsys.readouterr()

    assert code == EXIT_REJECTED
    assert captured.out == ""
    assert "Not a valid Wise statement" in captured.err


def test_cli_no_reconcile_accepts_tampered_balances(tmp_path, capsys):
    tampered = EUR_TEXT.replace("-88.49 722.66", "-88.49 722.67")
    path = _write(tmp_path, tampered)

    assert main([path]) == EXIT_REJECTED
    capsys.readouterr()

    assert main([path, "--no-reconcile"]) == EXIT_OK
    assert len(json.loads(capsys.readouterr().out)["transactions"]) == 15


def test_cli_missing_file(tmp_path, capsys):
    code = main([str(tmp_path / "nope.pdf")])
    assert code == EXIT_INTERNAL
    assert "No existe el archivo" in capsys.readouterr().err
