"""
tests/integration/conftest.py — Fixtures for all integration tests.

Design:
  - The app is created once per session using create_app("testing").
  - The API is stateless: every request carries the records or balances it
    works on, so there is nothing to reset between tests.
  - Requests go through Flask's test client, exercising schema validation,
    the global error handlers and the JSON provider end to end.

Fixtures:
  - app        → the session-wide Flask app
  - client     → a fresh test client per test
  - post_json  → post_json(url, body) → response; sends `body` as JSON
"""

from __future__ import annotations

import pytest

from settleup.app import create_app


@pytest.fixture(scope="session")
def app():
    """Creates the Flask application in 'testing' mode once for the session."""
    flask_app = create_app("testing")
    yield flask_app


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def post_json(client):
    """
    Returns a helper that POSTs a JSON body under /api/v1.

        resp = post_json("/settlements/simplify", {"balances": {...}})
    """

    def _post(path: str, body):
        return client.post(f"/api/v1{path}", json=body)

    return _post
