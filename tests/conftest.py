"""Pytest configuration and fixtures for ooda-ai-bot tests."""

import os

import pytest


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Keep developer env vars, .env files and config files out of tests."""
    for var in list(os.environ.keys()):
        if var.startswith(("VECTARA_", "SLACK_", "OODA_")):
            monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr("ooda_ai_bot.config.CONFIG_FILE", tmp_path / "config.json")
