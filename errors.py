"""Exceptions raised by realmwatch. Every one of them is fatal to a run."""


class RealmwatchError(Exception):
    """Base class for all realmwatch errors."""


class StorageError(RealmwatchError):
    """A local file could not be read or written."""


class ConfigError(StorageError):
    pass


class CredentialsError(StorageError):
    pass


class DecodeError(RealmwatchError):
    """A JSON document was malformed or did not have the expected shape."""


class NetworkError(RealmwatchError):
    """An HTTP request failed before a response was read."""


class HTTPStatusError(NetworkError):
    def __init__(self, status_code, url, body=""):
        self.status_code = status_code
        self.url = url
        self.body = body
        super().__init__(f"HTTP {status_code} from {url}")


class NotFoundError(RealmwatchError):
    pass


class TokenNotFoundError(NotFoundError):
    pass


class OAuthError(RealmwatchError):
    """The authorization server rejected the request or the redirect was bad."""


class NotificationError(RealmwatchError):
    pass
