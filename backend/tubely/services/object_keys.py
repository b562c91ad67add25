"""
Object key derivation for stored videos.

Keys look like ``landscape/<43 url-safe chars>.mp4``: an aspect prefix, a
token made from 32 bytes of CSPRNG output, and an extension taken from the
media subtype.
"""

import secrets

from collections.abc import Callable

from tubely.services.aspect_probe import LANDSCAPE, PORTRAIT


KEY_BYTES = 32
DEFAULT_EXTENSION = ".bin"

ASPECT_PREFIXES: dict[str, str] = {
    LANDSCAPE: "landscape",
    PORTRAIT: "portrait",
}
OTHER_PREFIX = "other"


def aspect_prefix(aspect_ratio: str) -> str:
    return ASPECT_PREFIXES.get(aspect_ratio, OTHER_PREFIX)


def media_type_extension(media_type: str) -> str:
    """``video/mp4`` gives ``.mp4``; anything without exactly one ``/`` gives ``.bin``."""
    parts = media_type.split("/")
    if len(parts) != 2 or not parts[1]:
        return DEFAULT_EXTENSION
    return f".{parts[1]}"


def _default_token() -> str:
    return secrets.token_urlsafe(KEY_BYTES)


class KeyDeriver:
    """
    Builds object keys.

    Args:
        token_factory: Zero-argument callable returning the random key
            component. Defaults to ``secrets.token_urlsafe(32)``.
    """

    def __init__(self, token_factory: Callable[[], str] | None = None) -> None:
        self.token_factory = token_factory or _default_token

    def generate(self) -> str:
        return self.token_factory()

    def derive(self, aspect_ratio: str, media_type: str) -> str:
        return f"{aspect_prefix(aspect_ratio)}/{self.generate()}{media_type_extension(media_type)}"


__all__ = ["KEY_BYTES", "KeyDeriver", "aspect_prefix", "media_type_extension"]
