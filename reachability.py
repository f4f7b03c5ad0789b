from enum import Enum

import requests
from loguru import logger


class LaunchGate(str, Enum):
    WEB = "web"
    NATIVE = "native"


def check_link(url: str, timeout: float | None = None) -> bool:
    """Return True when ``url`` answers with anything other than 404.

    Transport errors and invalid URLs count as unreachable. ``timeout`` of
    ``None`` waits for the response indefinitely.
    """
    if not url:
        logger.warning("Invalid URL")
        return False
    try:
        response = requests.get(url, timeout=timeout)
    except requests.RequestException as e:
        logger.warning(f"Reachability check failed: {e}")
        return False
    if response.status_code == 404:
        logger.info("code is 404")
        return False
    return True


def resolve_gate(url: str, timeout: float | None = None) -> LaunchGate:
    gate = LaunchGate.WEB if check_link(url, timeout) else LaunchGate.NATIVE
    logger.info(f"Launch gate resolved to {gate.value}")
    return gate
