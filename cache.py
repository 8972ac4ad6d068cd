#!/usr/bin/env python3
import json
import os
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from errors import DecodeError, StorageError, TokenNotFoundError

# A token this close to its expiry is already treated as expired.
EXPIRY_DELTA = timedelta(seconds=10)


def _utcnow():
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Token:
    access_token: str
    token_type: str = "Bearer"
    refresh_token: str = None
    expiry: datetime = None

    def expired(self, now=None):
        if self.expiry is None:
            return False
        now = now or _utcnow()
        return now >= self.expiry - EXPIRY_DELTA

    def authorization_header(self):
        return f"{self.token_type or 'Bearer'} {self.access_token}"

    def to_dict(self):
        return {
            "access_token": self.access_token,
            "token_type": self.token_type,
            "refresh_token": self.refresh_token,
            "expiry": self.expiry.isoformat() if self.expiry else None,
        }

    @classmethod
    def from_dict(cls, data):
        """Rebuild a token written by to_dict()."""
        if not isinstance(data, dict):
            raise DecodeError("Token must be a JSON object")
        access = data.get("access_token")
        if not isinstance(access, str) or not access:
            raise DecodeError("Token has no access_token")
        expiry = data.get("expiry")
        if expiry:
            try:
                expiry = datetime.fromisoformat(expiry)
            except (TypeError, ValueError) as e:
                raise DecodeError(f"Bad token expiry {expiry!r}") from e
            if expiry.tzinfo is None:
                expiry = expiry.replace(tzinfo=timezone.utc)
        return cls(
            access_token=access,
            token_type=data.get("token_type") or "Bearer",
            refresh_token=data.get("refresh_token") or None,
            expiry=expiry or None,
        )

    @classmethod
    def from_response(cls, data, now=None):
        """
        Build a token from an OAuth token endpoint response, turning the
        relative `expires_in` into an absolute expiry.
        """
        if not isinstance(data, dict) or not data.get("access_token"):
            raise DecodeError("Token response has no access_token")
        expiry = None
        expires_in = data.get("expires_in")
        if expires_in:
            try:
                expiry = (now or _utcnow()) + timedelta(seconds=int(expires_in))
            except (TypeError, ValueError) as e:
                raise DecodeError(f"Bad expires_in {expires_in!r}") from e
        return cls(
            access_token=data["access_token"],
            token_type=data.get("token_type") or "Bearer",
            refresh_token=data.get("refresh_token") or None,
            expiry=expiry,
        )


class TokenStore:
    """
    Persists one Token as JSON at a fixed path. load() performs no expiry
    check; that is left to the caller.
    """

    def __init__(self, path):
        self.path = path

    def load(self):
        try:
            with open(self.path, encoding="utf-8") as f:
                raw = f.read()
        except FileNotFoundError:
            raise TokenNotFoundError(f"No token file at {self.path}") from None
        except OSError as e:
            raise StorageError(f"Could not read {self.path}: {e}") from e
        try:
            data = json.loads(raw)
        except ValueError as e:
            raise DecodeError(f"Malformed token file {self.path}: {e}") from e
        return Token.from_dict(data)

    def save(self, token):
        try:
            parent = os.path.dirname(self.path)
            if parent:
                os.makedirs(parent, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(token.to_dict(), f, indent=2, sort_keys=True)
        except OSError as e:
            raise StorageError(f"Could not write {self.path}: {e}") from e
