"""Shared fixtures for the realmwatch test suite.

Nothing here touches the network: HTTP sessions are ``MagicMock`` objects
and file-backed pieces get a ``tmp_path``. The OAuth redirect listener
tests are the exception; they bind a real socket on 127.0.0.1 port 0.

Fixtures
--------
- ``settings``: a ``Settings`` pointed at a temporary secrets directory,
  with the redirect listener on an ephemeral port.
- ``make_response``: build a fake ``requests.Response``.
"""

from unittest.mock import MagicMock

import pytest
import requests

from config import Settings


@pytest.fixture()
def settings(tmp_path):
    return Settings(secrets_dir=str(tmp_path / "secrets"), redirect_port=0)


@pytest.fixture()
def make_response():
    """Return a factory for fake responses with a status and JSON payload."""

    def _make(payload=None, status_code=200, json_error=None, text=""):
        resp = MagicMock()
        resp.status_code = status_code
        resp.ok = 200 <= status_code < 400
        resp.text = text
        if status_code >= 400:
            resp.raise_for_status.side_effect = requests.exceptions.HTTPError(
                f"{status_code} Error", response=resp
            )
        if json_error is not None:
            resp.json.side_effect = json_error
        else:
            resp.json.return_value = payload
        return resp

    return _make
