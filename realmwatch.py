#!/usr/bin/env python3
"""
Realmwatch - wait for a WoW realm to come back up

Usage:
  python realmwatch.py [--realm "Area 52"] [--interval 60] [--open-browser]

Reads client credentials from secrets/client_id.txt and
secrets/client_secret.txt (or BLIZZARD_CLIENT_ID / BLIZZARD_CLIENT_SECRET),
authorizes against Battle.net once, then polls the realm's connected-realm
status every minute until it is no longer DOWN and pops a notification.
"""
import argparse
import logging
import sys

from api import BlizzardApi
from auth import Authorizer, authorized_session, fetch_client_credentials_token
from cache import TokenStore
from config import load_credentials, load_settings
from errors import RealmwatchError
from poller import poll_until_up
from utils import send_notification, setup_logging

log = logging.getLogger("realmwatch")


def parse_args(argv=None):
    p = argparse.ArgumentParser(
        prog="realmwatch",
        description="Notify when a WoW connected realm is no longer down.",
    )
    p.add_argument("--realm", help="realm name, matched exactly (default: Area 52)")
    p.add_argument("--interval", type=int, help="seconds between status checks (default: 60)")
    p.add_argument("--secrets-dir", help="directory holding credentials and token.json")
    p.add_argument("--open-browser", action="store_true",
                   help="open the authorization URL in a browser as well as printing it")
    p.add_argument("--client-credentials", action="store_true",
                   help="use an app token instead of the interactive login")
    p.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return p.parse_args(argv)


def get_token(settings, client_id, client_secret, args):
    if args.client_credentials:
        log.info("Requesting client-credentials token")
        return fetch_client_credentials_token(client_id, client_secret, settings.token_url)
    authorizer = Authorizer(
        client_id,
        client_secret,
        TokenStore(settings.token_path),
        settings,
        logger=log,
        open_browser=args.open_browser,
    )
    return authorizer.authorize()


def run(settings, args):
    client_id, client_secret = load_credentials(settings.secrets_dir)
    token = get_token(settings, client_id, client_secret, args)

    with authorized_session(token) as session:
        api = BlizzardApi(session, settings.region, settings.locale)
        realm_id = api.get_realm_id(settings.realm_name)
        realm = api.get_realm(realm_id)
        log.info("Watching %s (realm %d)", settings.realm_name, realm_id)
        poll_until_up(
            lambda: api.get_connected_realm_status(realm.connected_realm_href),
            send_notification,
            interval=settings.poll_interval,
            logger=log,
        )


def main(argv=None):
    args = parse_args(argv)
    setup_logging(args.verbose)
    try:
        settings = load_settings()
        if args.interval is not None and args.interval <= 0:
            log.error("--interval must be positive")
            return 2
        settings = settings.override(
            realm_name=args.realm,
            poll_interval=args.interval,
            secrets_dir=args.secrets_dir,
        )
        run(settings, args)
    except RealmwatchError as e:
        log.error("%s", e)
        return 1
    except KeyboardInterrupt:
        log.info("Interrupted")
        return 130
    return 0


if __name__ == "__main__":
    sys.exit(main())
