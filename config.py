#!/usr/bin/env python3
"""
Settings and credentials for realmwatch.

Values come from the process environment, with a `.env` file next to this
module loaded first. Client credentials live in plain text files under the
secrets directory.
"""
import os
from dataclasses import dataclass, replace

from dotenv import load_dotenv

from errors import ConfigError, CredentialsError

ROOT_DIR = os.path.abspath(os.path.dirname(__file__))

# OAuth endpoints
AUTHORIZE_URL  = "https://oauth.battle.net/authorize"
TOKEN_URL      = "https://oauth.battle.net/token"
SCOPES         = ("wow.profile",)
REDIRECT_PATH  = "/redirect"

# Defaults
DEFAULT_REALM    = "Area 52"
DEFAULT_REGION   = "us"
DEFAULT_LOCALE   = "en_US"
DEFAULT_INTERVAL = 60
DEFAULT_SECRETS  = "secrets"
DEFAULT_HOST     = "127.0.0.1"
DEFAULT_PORT     = 8080

CLIENT_ID_FILE     = "client_id.txt"
CLIENT_SECRET_FILE = "client_secret.txt"
TOKEN_FILE         = "token.json"


@dataclass(frozen=True)
class Settings:
    realm_name: str = DEFAULT_REALM
    region: str = DEFAULT_REGION
    locale: str = DEFAULT_LOCALE
    poll_interval: int = DEFAULT_INTERVAL
    secrets_dir: str = DEFAULT_SECRETS
    redirect_host: str = DEFAULT_HOST
    redirect_port: int = DEFAULT_PORT
    authorize_url: str = AUTHORIZE_URL
    token_url: str = TOKEN_URL
    scopes: tuple = SCOPES

    @property
    def redirect_url(self):
        return f"http://{self.redirect_host}:{self.redirect_port}{REDIRECT_PATH}"

    @property
    def token_path(self):
        return os.path.join(self.secrets_dir, TOKEN_FILE)

    def override(self, **changes):
        """Return a copy with every non-None change applied."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})


def _int_setting(env, name, default):
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from None


def load_settings(env=None):
    """
    Build Settings from the environment. `env` defaults to os.environ after
    loading `.env`; pass a dict to bypass both.
    """
    if env is None:
        load_dotenv(os.path.join(ROOT_DIR, ".env"))
        env = os.environ

    interval = _int_setting(env, "POLL_INTERVAL", DEFAULT_INTERVAL)
    if interval <= 0:
        raise ConfigError(f"POLL_INTERVAL must be positive, got {interval}")

    port = _int_setting(env, "REDIRECT_PORT", DEFAULT_PORT)
    if not 0 <= port <= 65535:
        raise ConfigError(f"REDIRECT_PORT must be between 0 and 65535, got {port}")

    return Settings(
        realm_name=env.get("REALM_NAME") or DEFAULT_REALM,
        region=env.get("BLIZZARD_REGION") or DEFAULT_REGION,
        locale=env.get("BLIZZARD_LOCALE") or DEFAULT_LOCALE,
        poll_interval=interval,
        secrets_dir=env.get("SECRETS_DIR") or DEFAULT_SECRETS,
        redirect_host=env.get("REDIRECT_HOST") or DEFAULT_HOST,
        redirect_port=port,
    )


def _read_secret(path, env_name, env):
    if os.path.isfile(path):
        try:
            with open(path, encoding="utf-8") as f:
                value = f.read().strip()
        except OSError as e:
            raise CredentialsError(f"Could not read {path}: {e}") from e
    else:
        value = (env.get(env_name) or "").strip()
    if not value:
        raise CredentialsError(f"Missing credential: put it in {path} or set {env_name}")
    return value


def load_credentials(secrets_dir, env=None):
    """Return (client_id, client_secret), files first, then environment."""
    if env is None:
        env = os.environ
    client_id = _read_secret(
        os.path.join(secrets_dir, CLIENT_ID_FILE), "BLIZZARD_CLIENT_ID", env
    )
    client_secret = _read_secret(
        os.path.join(secrets_dir, CLIENT_SECRET_FILE), "BLIZZARD_CLIENT_SECRET", env
    )
    return client_id, client_secret
