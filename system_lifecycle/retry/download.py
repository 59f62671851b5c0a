"""HTTP downloads reporting curl-style exit statuses, for use under retry."""
from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

import requests

from ..core.logging_utils import EventLogger, get_logger

EXIT_GENERIC = 1
EXIT_CONNECT = 7
EXIT_HTTP = 22
EXIT_TIMEOUT = 28
EXIT_WRITE = 23

_CHUNK_SIZE = 64 * 1024


def download_file(
    url: str,
    output: str | os.PathLike[str],
    *,
    session: Optional[requests.Session] = None,
    timeout: float = 30.0,
    logger: Optional[EventLogger] = None,
) -> int:
    """Stream *url* into *output* and return 0, or a curl-compatible failure code.

    The body is written to a ``.part`` sibling and moved into place only once
    complete, so a failed attempt never leaves a truncated file at *output*.
    """

    log = logger or get_logger("download")
    target = Path(output)
    partial = target.with_name(f".{target.name}.part")
    http = session or requests
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        with http.get(url, stream=True, timeout=timeout) as response:
            response.raise_for_status()
            with partial.open("wb") as handle:
                for chunk in response.iter_content(chunk_size=_CHUNK_SIZE):
                    if chunk:
                        handle.write(chunk)
        os.replace(partial, target)
    except requests.HTTPError as exc:
        log.warning(f"Download of {url} failed: {exc}")
        code = EXIT_HTTP
    except requests.Timeout as exc:
        log.warning(f"Download of {url} timed out: {exc}")
        code = EXIT_TIMEOUT
    except requests.ConnectionError as exc:
        log.warning(f"Could not connect to {url}: {exc}")
        code = EXIT_CONNECT
    except requests.RequestException as exc:
        log.warning(f"Download of {url} failed: {exc}")
        code = EXIT_GENERIC
    except OSError as exc:
        log.warning(f"Could not write {target}: {exc}")
        code = EXIT_WRITE
    else:
        return 0
    partial.unlink(missing_ok=True)
    return code


__all__ = ["download_file"]
