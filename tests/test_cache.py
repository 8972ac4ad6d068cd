"""Unit tests for cache.py: the Token model and the JSON token store."""

import json
from datetime import datetime, timedelta, timezone

import pytest

from cache import Token, TokenStore
from errors import DecodeError, StorageError, TokenNotFoundError

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


# =============================================================================
# Token
# =============================================================================


class TestToken:
    def test_no_expiry_never_expires(self):
        assert Token("abc").expired(NOW) is False

    def test_expired_after_expiry(self):
        token = Token("abc", expiry=NOW - timedelta(minutes=1))
        assert token.expired(NOW) is True

    def test_expired_within_grace_window(self):
        token = Token("abc", expiry=NOW + timedelta(seconds=5))
        assert token.expired(NOW) is True

    def test_not_expired_well_before_expiry(self):
        token = Token("abc", expiry=NOW + timedelta(hours=1))
        assert token.expired(NOW) is False

    def test_authorization_header(self):
        assert Token("abc", token_type="bearer").authorization_header() == "bearer abc"

    def test_from_response_converts_expires_in(self):
        token = Token.from_response(
            {"access_token": "abc", "token_type": "bearer", "expires_in": 86399},
            now=NOW,
        )
        assert token.access_token == "abc"
        assert token.token_type == "bearer"
        assert token.refresh_token is None
        assert token.expiry == NOW + timedelta(seconds=86399)

    def test_from_response_keeps_refresh_token(self):
        token = Token.from_response({"access_token": "abc", "refresh_token": "r1"})
        assert token.refresh_token == "r1"
        assert token.expiry is None

    def test_from_response_without_access_token(self):
        with pytest.raises(DecodeError):
            Token.from_response({"token_type": "bearer"})

    def test_from_dict_rejects_non_object(self):
        with pytest.raises(DecodeError):
            Token.from_dict(["abc"])

    def test_from_dict_rejects_bad_expiry(self):
        with pytest.raises(DecodeError):
            Token.from_dict({"access_token": "abc", "expiry": "tomorrow"})

    def test_from_dict_assumes_utc_for_naive_expiry(self):
        token = Token.from_dict({"access_token": "abc", "expiry": "2024-05-01T12:00:00"})
        assert token.expiry == NOW


# =============================================================================
# TokenStore
# =============================================================================


class TestTokenStore:
    def test_save_then_load_round_trips(self, tmp_path):
        store = TokenStore(str(tmp_path / "token.json"))
        token = Token("abc", "bearer", "refresh", NOW + timedelta(hours=24))

        store.save(token)

        assert store.load() == token

    def test_save_creates_parent_directory(self, tmp_path):
        path = tmp_path / "secrets" / "token.json"
        TokenStore(str(path)).save(Token("abc"))
        assert path.exists()

    def test_save_overwrites(self, tmp_path):
        store = TokenStore(str(tmp_path / "token.json"))
        store.save(Token("first"))
        store.save(Token("second"))
        assert store.load().access_token == "second"

    def test_saved_file_is_json(self, tmp_path):
        path = tmp_path / "token.json"
        TokenStore(str(path)).save(Token("abc"))
        data = json.loads(path.read_text())
        assert data["access_token"] == "abc"
        assert data["expiry"] is None

    def test_load_missing_file(self, tmp_path):
        with pytest.raises(TokenNotFoundError):
            TokenStore(str(tmp_path / "nope.json")).load()

    def test_load_malformed_json(self, tmp_path):
        path = tmp_path / "token.json"
        path.write_text("{not json")
        with pytest.raises(DecodeError):
            TokenStore(str(path)).load()

    def test_load_without_access_token(self, tmp_path):
        path = tmp_path / "token.json"
        path.write_text('{"token_type": "bearer"}')
        with pytest.raises(DecodeError):
            TokenStore(str(path)).load()

    def test_load_does_not_check_expiry(self, tmp_path):
        store = TokenStore(str(tmp_path / "token.json"))
        stale = Token("old", expiry=NOW - timedelta(days=30))
        store.save(stale)
        assert store.load() == stale

    def test_save_failure_is_storage_error(self, tmp_path):
        blocker = tmp_path / "secrets"
        blocker.write_text("not a directory")
        with pytest.raises(StorageError):
            TokenStore(str(blocker / "token.json")).save(Token("abc"))

    def test_unreadable_path_is_storage_error(self, tmp_path):
        directory = tmp_path / "token.json"
        directory.mkdir()
        with pytest.raises(StorageError):
            TokenStore(str(directory)).load()
