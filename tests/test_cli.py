"""Tests for the typer CLI."""

import logging

import pytest
from typer.testing import CliRunner

from ooda_ai_bot import cli
from ooda_ai_bot.exceptions import RemoteError
from ooda_ai_bot.models import QueryResult, Source

runner = CliRunner()


class FakeClient:
    """Stands in for VectaraClient inside the CLI."""

    result = QueryResult(summary="# OODA\n**Observe** first.", sources=[Source(title="Boyd", url="https://oodaloop.com/boyd")])
    error: Exception | None = None
    questions: list[str] = []

    def __init__(self, config):
        self.config = config

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return None

    async def query(self, question):
        FakeClient.questions.append(question)
        if FakeClient.error:
            raise FakeClient.error
        return FakeClient.result


@pytest.fixture(autouse=True)
def fake_client(monkeypatch):
    FakeClient.error = None
    FakeClient.questions = []
    monkeypatch.setattr(cli, "VectaraClient", FakeClient)
    yield FakeClient
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)


def test_ask_prints_formatted_reply():
    result = runner.invoke(cli.app, ["ask", "What is OODA?"])

    assert result.exit_code == 0
    assert "OODA\nObserve first.\n\n*Sources:*\n• <https://oodaloop.com/boyd|Boyd>" in result.output
    assert FakeClient.questions == ["What is OODA?"]


def test_ask_raw():
    result = runner.invoke(cli.app, ["ask", "q", "--raw"])

    assert result.exit_code == 0
    assert "**Observe** first." in result.output
    assert '"title": "Boyd"' in result.output
    assert '"url": "https://oodaloop.com/boyd"' in result.output


def test_ask_blank_question():
    result = runner.invoke(cli.app, ["ask", "   "])

    assert result.exit_code == 1
    assert FakeClient.questions == []


def test_ask_remote_error():
    FakeClient.error = RemoteError("Vectara API request failed: Connection refused")

    result = runner.invoke(cli.app, ["ask", "q"])

    assert result.exit_code == 1
    assert "Connection refused" in result.output


def test_config_masks_secrets(monkeypatch):
    monkeypatch.setenv("VECTARA_API_KEY", "very-secret")
    monkeypatch.setenv("VECTARA_CORPUS_KEY", "ooda")

    result = runner.invoke(cli.app, ["config"])

    assert result.exit_code == 0
    assert "Corpus: ooda" in result.output
    assert "API Key: (set)" in result.output
    assert "Slack Bot Token: (not set)" in result.output
    assert "very-secret" not in result.output


def test_run_without_slack_tokens_fails():
    result = runner.invoke(cli.app, ["run"])

    assert result.exit_code == 1
    assert "SLACK_BOT_TOKEN" in result.output
