"""
URL normalization.

Every matcher scans the same normalized form of a URL::

    scheme://host[:port]/path[?query]

Scheme and host are lower-cased, userinfo and fragment are dropped and an
empty path becomes ``/``.
"""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import urlsplit

from .exceptions import GfwListUrlError


@dataclass(frozen=True)
class NormalizedUrl:
    """A URL decomposed for matching."""

    text: str
    host: str
    host_end: int  # offset in text just past the host

    @property
    def remainder(self) -> str:
        """Everything following the host (port, path and query)."""
        return self.text[self.host_end :]


def normalize_url(url: str) -> NormalizedUrl:
    """Normalize a URL, raising GfwListUrlError if it has no scheme or host."""
    try:
        parts = urlsplit(url.strip())
        port = parts.port
    except ValueError as e:
        raise GfwListUrlError(url, str(e)) from e

    if not parts.scheme:
        raise GfwListUrlError(url, "missing scheme")

    hostname = parts.hostname
    if not hostname:
        raise GfwListUrlError(url, "missing host")
    hostname = hostname.rstrip(".")
    if not hostname:
        raise GfwListUrlError(url, "missing host")

    # IPv6 literals keep their brackets
    host = f"[{hostname}]" if ":" in hostname else hostname

    prefix = f"{parts.scheme.lower()}://{host}"
    host_end = len(prefix)

    text = prefix
    if port is not None:
        text += f":{port}"
    text += parts.path or "/"
    if parts.query:
        text += f"?{parts.query}"

    return NormalizedUrl(text=text, host=hostname, host_end=host_end)
