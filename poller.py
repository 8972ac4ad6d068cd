#!/usr/bin/env python3
import logging
import time

log = logging.getLogger(__name__)

STATUS_DOWN = "DOWN"

POLLING = "POLLING"
DONE    = "DONE"


def poll_until_up(fetch_status, notify, interval=60, sleep=time.sleep, logger=None):
    """
    Call fetch_status() every `interval` seconds until the reported status
    type is anything but DOWN, then call notify() once and return the last
    status. There is no attempt limit; errors from either callable propagate.
    """
    logger = logger or log
    state = POLLING
    while state == POLLING:
        logger.info("Fetching server status...")
        status = fetch_status()
        logger.debug("Connected realm status: %s", status.status_type)
        if status.status_type != STATUS_DOWN:
            state = DONE
        else:
            sleep(interval)

    logger.info("Notifying that servers are up!")
    notify()
    return status
