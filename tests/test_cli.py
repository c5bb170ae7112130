import json

import pytest
from typer.testing import CliRunner

from conftest import HUMAN_TEXT, FakeFinder, FakeLLM, FakeSentiment
from verifai_cli import main
from verifai_cli.models import AnalysisRecord

runner = CliRunner()


@pytest.fixture()
def cli_service(monkeypatch, make_service, settings):
    monkeypatch.setenv("VERIFAI_STORE_PATH", str(settings.store_path))
    service = make_service(llm=FakeLLM(), sentiment=FakeSentiment(), finder=FakeFinder())
    monkeypatch.setattr(main, "_build_service", lambda use_llm=True: service)
    return service


def test_text_json(cli_service):
    result = runner.invoke(main.app, ["text", HUMAN_TEXT, "--json", "--user", "ana"])
    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert payload["content_type"] == "text"
    assert payload["user_id"] == "ana"
    assert payload["verdict"]["backend"] == "combined"
    assert payload["related_content"][0]["source"] == "snopes.com"


def test_text_from_stdin_without_related(cli_service):
    result = runner.invoke(main.app, ["text", "--json", "--no-related"], input=HUMAN_TEXT)
    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert payload["content"] == HUMAN_TEXT
    assert payload["related_content"] == []


def test_text_from_file(cli_service, tmp_path):
    path = tmp_path / "input.txt"
    path.write_text(HUMAN_TEXT, encoding="utf-8")
    result = runner.invoke(main.app, ["text", "--file", str(path), "--json", "--no-related"])
    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout)["content"] == HUMAN_TEXT


def test_text_from_missing_file_is_a_usage_error(cli_service, tmp_path):
    result = runner.invoke(main.app, ["text", "--file", str(tmp_path / "missing.txt")])
    assert result.exit_code == 2
    assert not isinstance(result.exception, FileNotFoundError)


def test_validation_error_exits_nonzero(cli_service):
    result = runner.invoke(main.app, ["text", "too short", "--json"])
    assert result.exit_code == 1
    assert "demasiado corto" in json.loads(result.stdout)["error"]


def test_text_rendered(cli_service):
    result = runner.invoke(main.app, ["text", HUMAN_TEXT])
    assert result.exit_code == 0, result.output
    assert "VEREDICTO" in result.stdout
    assert "Factores" in result.stdout
    assert "Contenido relacionado" in result.stdout


def test_file_missing(cli_service, tmp_path):
    result = runner.invoke(main.app, ["file", str(tmp_path / "nope.pdf")])
    assert result.exit_code == 1
    assert "No se encontró" in result.stdout


def test_history_and_stats(cli_service, store):
    for i in range(3):
        store.save(AnalysisRecord(content_type="text", content=f"sample {i}", verdict=FakeLLM().result))

    history = runner.invoke(main.app, ["history", "--json", "--count", "2"])
    assert history.exit_code == 0, history.output
    assert [r["content"] for r in json.loads(history.stdout)] == ["sample 2", "sample 1"]

    rendered = runner.invoke(main.app, ["history"])
    assert rendered.exit_code == 0, rendered.output
    assert "Últimos 3 análisis" in rendered.stdout

    stats = runner.invoke(main.app, ["stats", "--json"])
    assert stats.exit_code == 0, stats.output
    payload = json.loads(stats.stdout)
    assert payload["total_analyses"] == 3
    assert payload["recent_analyses"][0]["content"] == "sample 2"


def test_history_empty(cli_service):
    result = runner.invoke(main.app, ["history"])
    assert result.exit_code == 0
    assert "No hay análisis" in result.stdout


def test_invalid_configuration_is_reported(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("VERIFAI_STORE_PATH", str(tmp_path / "store"))
    monkeypatch.setenv("VERIFAI_MIN_TEXT_LENGTH", "abc")
    result = runner.invoke(main.app, ["stats"])
    assert result.exit_code == 1
    assert "Configuración inválida" in result.stdout
    assert "min_text_length" in result.stdout


def test_status_json(cli_service):
    result = runner.invoke(main.app, ["status", "--json"])
    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout) == {
        "llm": "online",
        "sentiment": "online",
        "search": "online",
        "store": "online",
    }
