"""
tests/conftest.py
"""
from __future__ import annotations

from typing import Generator

import pytest
from flask.testing import FlaskClient, FlaskCliRunner

# Editor, HTTP routes and CLI all live in one module:
from folio.editor import app


@pytest.fixture(scope="session", autouse=True)
def _configure_app() -> None:
    """
    Configure the Flask app *once* before the first test is collected.
    """
    app.config.update(TESTING=True)


@pytest.fixture
def client() -> Generator[FlaskClient, None, None]:
    """
    Gives each test an application context *and* test client.

    Yields:
        `flask.testing.FlaskClient`
    """
    with app.test_client() as client:
        with app.app_context():
            yield client


@pytest.fixture
def runner() -> FlaskCliRunner:
    """Click runner wired to ``app.cli`` (``flask repair`` / ``flask split``)."""
    return app.test_cli_runner()
