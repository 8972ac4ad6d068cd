#!/usr/bin/env python3
"""
Battle.net OAuth2 for realmwatch.

A stored token is reused when it is still valid. Otherwise the user is sent
through the authorization-code flow: the authorize URL is printed, a local
listener catches the redirect, and the code is exchanged for a token that is
written back to the store.
"""
import logging
import secrets
import threading
import webbrowser
from concurrent.futures import Future
from http.server import BaseHTTPRequestHandler, HTTPServer
from urllib.parse import parse_qs, urlencode, urlparse

import requests

from cache import Token
from config import REDIRECT_PATH, TOKEN_URL
from errors import (
    DecodeError,
    NetworkError,
    OAuthError,
    StorageError,
    TokenNotFoundError,
)

log = logging.getLogger(__name__)

REQUEST_TIMEOUT = 30
LISTENER_READ_TIMEOUT = 10

MSG_RECEIVED = b"Received auth code; you can close this page now."
MSG_NO_CODE  = b"No auth code"


# ---- Token endpoint ----
def _request_token(http, token_url, data, client_id, client_secret):
    """POST a grant to the token endpoint and turn the reply into a Token."""
    try:
        resp = http.post(
            token_url,
            data=data,
            auth=(client_id, client_secret),
            timeout=REQUEST_TIMEOUT,
        )
    except requests.exceptions.RequestException as e:
        raise NetworkError(f"Token request to {token_url} failed: {e}") from e

    try:
        resp.raise_for_status()
    except requests.exceptions.HTTPError as e:
        raise OAuthError(
            f"Token request rejected (HTTP {e.response.status_code}): "
            f"{_error_detail(e.response) or 'no detail'}"
        ) from e

    try:
        payload = resp.json()
    except ValueError as e:
        raise DecodeError(f"Token endpoint returned invalid JSON: {e}") from e

    if isinstance(payload, dict) and "error" in payload:
        raise OAuthError(f"Token request rejected: {_error_detail(resp)}")
    return Token.from_response(payload)


def _error_detail(resp):
    try:
        payload = resp.json()
    except ValueError:
        return None
    if isinstance(payload, dict):
        return payload.get("error_description") or payload.get("error")
    return None


def fetch_client_credentials_token(client_id, client_secret, token_url=TOKEN_URL, http=requests):
    """
    Retrieve an app token using client credentials. No user interaction and
    nothing is persisted; game-data endpoints accept this token too.
    """
    return _request_token(
        http, token_url, {"grant_type": "client_credentials"}, client_id, client_secret
    )


def authorized_session(token):
    """Return a requests.Session that sends the token on every request."""
    session = requests.Session()
    session.headers["Authorization"] = token.authorization_header()
    return session


def build_authorization_url(authorize_url, client_id, redirect_uri, scopes, state):
    params = {
        "access_type": "offline",
        "client_id": client_id,
        "redirect_uri": redirect_uri,
        "response_type": "code",
        "scope": " ".join(scopes),
        "state": state,
    }
    return f"{authorize_url}?{urlencode(params)}"


# ---- Redirect listener ----
class _RedirectHandler(BaseHTTPRequestHandler):
    # The server is single-threaded; an idle connection (browser preconnect)
    # must not block the real redirect.
    timeout = LISTENER_READ_TIMEOUT

    def _reply(self, status, body):
        self.send_response(status)
        self.send_header("Content-Type", "text/plain; charset=utf-8")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def do_GET(self):
        listener = self.server.listener
        url = urlparse(self.path)
        if url.path != listener.path:
            self._reply(404, b"Not found")
            return

        query = parse_qs(url.query)
        code = query.get("code", [""])[0]
        error = query.get("error", [""])[0]
        if not code and not error:
            self._reply(400, MSG_NO_CODE)
            return

        if listener.expected_state is not None:
            if query.get("state", [""])[0] != listener.expected_state:
                listener.logger.warning("Ignoring redirect with mismatched state")
                self._reply(400, b"State mismatch")
                return

        if error:
            listener.fail(OAuthError(f"Authorization denied: {error}"))
            self._reply(400, b"Authorization failed: " + error.encode("utf-8", "replace"))
            return

        listener.deliver(code)
        self._reply(200, MSG_RECEIVED)

    def log_message(self, format, *args):
        self.server.listener.logger.debug("redirect listener: " + format, *args)


class RedirectListener:
    """
    One-shot HTTP listener for the OAuth redirect.

    The first request carrying a code (and the expected state, when one is
    set) resolves a single-use Future; anything after that is answered but
    ignored. The socket is bound on construction so a busy port fails early.
    """

    def __init__(self, host, port, path=REDIRECT_PATH, expected_state=None, logger=None):
        self.host = host
        self.path = path
        self.expected_state = expected_state
        self.logger = logger or log
        self._future = Future()
        self._lock = threading.Lock()
        self._thread = None
        try:
            self._server = HTTPServer((host, port), _RedirectHandler)
        except OSError as e:
            raise NetworkError(f"Could not listen on {host}:{port}: {e}") from e
        self._server.listener = self

    @property
    def server_address(self):
        host, port = self._server.server_address[:2]
        return host, port

    @property
    def redirect_url(self):
        return f"http://{self.host}:{self.server_address[1]}{self.path}"

    def deliver(self, code):
        """Resolve with `code`. Returns False if already resolved."""
        with self._lock:
            if self._future.done():
                self.logger.debug("Auth code already received; ignoring another")
                return False
            self._future.set_result(code)
            return True

    def fail(self, exc):
        with self._lock:
            if self._future.done():
                return False
            self._future.set_exception(exc)
            return True

    def start(self):
        self._thread = threading.Thread(
            target=self._server.serve_forever, name="redirect-listener", daemon=True
        )
        self._thread.start()
        self.logger.debug("Listening for OAuth redirect on %s", self.redirect_url)
        return self

    def wait(self, timeout=None):
        """Block until a code arrives and return it."""
        return self._future.result(timeout)

    def shutdown(self):
        if self._thread is not None:
            self._server.shutdown()
            self._thread.join()
            self._thread = None
        self._server.server_close()

    def __enter__(self):
        return self.start()

    def __exit__(self, *exc):
        self.shutdown()


# ---- Authorizer ----
class Authorizer:
    """
    Produces a usable Token: stored, refreshed, or freshly authorized.
    """

    def __init__(self, client_id, client_secret, store, settings,
                 logger=None, open_browser=False, http=requests, state_factory=None):
        self.client_id = client_id
        self.client_secret = client_secret
        self.store = store
        self.settings = settings
        self.logger = logger or log
        self.open_browser = open_browser
        self.http = http
        self.make_state = state_factory or (lambda: secrets.token_urlsafe(16))

    def authorize(self):
        try:
            token = self.store.load()
        except (TokenNotFoundError, DecodeError, StorageError) as e:
            self.logger.info("Failed to get token, trying OAuth2: %s", e)
        else:
            if not token.expired():
                self.logger.debug("Using stored token from %s", self.store.path)
                return token
            if token.refresh_token:
                try:
                    return self._keep(self.refresh(token))
                except (NetworkError, OAuthError, DecodeError) as e:
                    self.logger.warning("Token refresh failed, trying OAuth2: %s", e)
            else:
                self.logger.info("Stored token has expired, trying OAuth2")

        code, redirect_uri = self.request_code()
        return self._keep(self.exchange(code, redirect_uri))

    def _keep(self, token):
        self.store.save(token)
        self.logger.info("Saved token to %s", self.store.path)
        return token

    def request_code(self):
        """
        Run the browser half of the flow. Returns (code, redirect_uri); the
        same redirect_uri has to be sent with the exchange.
        """
        state = self.make_state()
        listener = RedirectListener(
            self.settings.redirect_host,
            self.settings.redirect_port,
            REDIRECT_PATH,
            expected_state=state,
            logger=self.logger,
        )
        with listener:
            redirect_uri = listener.redirect_url
            url = build_authorization_url(
                self.settings.authorize_url,
                self.client_id,
                redirect_uri,
                self.settings.scopes,
                state,
            )
            print(url, flush=True)
            if self.open_browser:
                webbrowser.open(url)
            code = listener.wait()
        self.logger.info("Received authorization code")
        return code, redirect_uri

    def exchange(self, code, redirect_uri):
        return _request_token(
            self.http,
            self.settings.token_url,
            {
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": redirect_uri,
            },
            self.client_id,
            self.client_secret,
        )

    def refresh(self, token):
        fresh = _request_token(
            self.http,
            self.settings.token_url,
            {"grant_type": "refresh_token", "refresh_token": token.refresh_token},
            self.client_id,
            self.client_secret,
        )
        if fresh.refresh_token is None:
            fresh = Token(fresh.access_token, fresh.token_type, token.refresh_token, fresh.expiry)
        return fresh
