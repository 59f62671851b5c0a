from __future__ import annotations

import platform
import socket

UNKNOWN_OS = "Unknown"


def hostname() -> str:
    return socket.gethostname()


def os_description() -> str:
    """Human readable OS name, e.g. ``Ubuntu 24.04.1 LTS``."""

    try:
        release = platform.freedesktop_os_release()
    except OSError:
        return UNKNOWN_OS
    return release.get("PRETTY_NAME") or release.get("NAME") or UNKNOWN_OS


__all__ = ["UNKNOWN_OS", "hostname", "os_description"]
