#!/usr/bin/env python3
import logging
from dataclasses import dataclass

import requests

from config import DEFAULT_LOCALE, DEFAULT_REGION
from errors import DecodeError, HTTPStatusError, NetworkError, NotFoundError

log = logging.getLogger(__name__)

REQUEST_TIMEOUT = 30

REALM_INDEX_PATH = "/data/wow/realm/index"
REALM_PATH       = "/data/wow/realm/{realm_id}"


def _field(data, key, kind):
    """Pull a required, typed field out of a decoded JSON object."""
    if not isinstance(data, dict):
        raise DecodeError(f"Expected a JSON object holding {key!r}, got {type(data).__name__}")
    if key not in data:
        raise DecodeError(f"Missing field {key!r}")
    value = data[key]
    # bool is an int subclass; never accept it for a numeric id
    if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
        raise DecodeError(f"Field {key!r} should be {kind.__name__}, got {type(value).__name__}")
    return value


# ---- Response shapes ----
@dataclass(frozen=True)
class Realm:
    name: str
    id: int
    slug: str

    @classmethod
    def from_json(cls, data):
        return cls(
            name=_field(data, "name", str),
            id=_field(data, "id", int),
            slug=_field(data, "slug", str),
        )


@dataclass(frozen=True)
class RealmIndex:
    realms: tuple

    @classmethod
    def from_json(cls, data):
        return cls(realms=tuple(Realm.from_json(r) for r in _field(data, "realms", list)))


@dataclass(frozen=True)
class RealmDetail:
    connected_realm_href: str

    @classmethod
    def from_json(cls, data):
        connected = _field(data, "connected_realm", dict)
        return cls(connected_realm_href=_field(connected, "href", str))


@dataclass(frozen=True)
class ConnectedRealmStatus:
    status_type: str

    @classmethod
    def from_json(cls, data):
        status = _field(data, "status", dict)
        return cls(status_type=_field(status, "type", str))


# ---- Fetching ----
def fetch_json(session, url, shape, params=None):
    """
    GET `url` with an authorized session and decode the body into `shape`,
    any class with a from_json(data) constructor.
    """
    try:
        resp = session.get(url, params=params, timeout=REQUEST_TIMEOUT)
        resp.raise_for_status()
    except requests.exceptions.HTTPError as e:
        raise HTTPStatusError(e.response.status_code, url, e.response.text) from e
    except requests.exceptions.RequestException as e:
        raise NetworkError(f"GET {url} failed: {e}") from e

    try:
        data = resp.json()
    except ValueError as e:
        raise DecodeError(f"Invalid JSON from {url}: {e}") from e
    return shape.from_json(data)


class BlizzardApi:
    """The three game-data calls realmwatch needs, bound to one region."""

    def __init__(self, session, region=DEFAULT_REGION, locale=DEFAULT_LOCALE):
        self.session = session
        self.base_url = f"https://{region}.api.blizzard.com"
        self.params = {"namespace": f"dynamic-{region}", "locale": locale}

    def get_realms(self):
        return fetch_json(
            self.session, self.base_url + REALM_INDEX_PATH, RealmIndex, self.params
        )

    def get_realm_id(self, name):
        """Exact, case-sensitive lookup of a realm's numeric id by name."""
        for realm in self.get_realms().realms:
            if realm.name == name:
                log.debug("Realm %r has id %d (%s)", name, realm.id, realm.slug)
                return realm.id
        raise NotFoundError(f"Could not find matching realm {name!r}")

    def get_realm(self, realm_id):
        return fetch_json(
            self.session,
            self.base_url + REALM_PATH.format(realm_id=realm_id),
            RealmDetail,
            self.params,
        )

    def get_connected_realm_status(self, href):
        # the href already carries its namespace query
        return fetch_json(self.session, href, ConnectedRealmStatus)


def get_realm_id(session, name, region=DEFAULT_REGION, locale=DEFAULT_LOCALE):
    return BlizzardApi(session, region, locale).get_realm_id(name)
