"""
Media type parsing and the video allow-list.

``parse_media_type`` accepts a ``Content-Type`` header value of the form
``type/subtype`` optionally followed by ``;name=value`` parameters, and
returns the lowercased ``type/subtype``. ``MediaTypeClassifier`` decides
whether a parsed media type is an accepted video container.
"""

import re

from collections.abc import Iterable

from tubely.core.exceptions import BadRequestError, UnsupportedMediaTypeError


# RFC 7230 token characters
_TOKEN = r"[!#$%&'*+\-.^_`|~0-9A-Za-z]+"
_MEDIA_TYPE_RE = re.compile(rf"^({_TOKEN})/({_TOKEN})$")
_PARAM_NAME_RE = re.compile(rf"^{_TOKEN}$")

DEFAULT_VIDEO_TOKENS: tuple[str, ...] = ("mp4", "mkv")


def parse_media_type(header: str | None) -> str:
    """
    Parse a Content-Type header into its lowercased ``type/subtype``.

    Raises:
        BadRequestError: If the header is missing or malformed.
    """
    if header is None or not header.strip():
        raise BadRequestError("Missing Content-Type for uploaded file")

    base, *params = header.split(";")
    match = _MEDIA_TYPE_RE.match(base.strip())
    if match is None:
        raise BadRequestError("Invalid Content-Type", details={"content_type": header})

    for param in params:
        param = param.strip()
        if not param:
            continue
        name, sep, value = param.partition("=")
        if not sep or not _PARAM_NAME_RE.match(name.strip()) or not value.strip():
            raise BadRequestError(
                "Invalid Content-Type parameter", details={"content_type": header}
            )

    return f"{match.group(1)}/{match.group(2)}".lower()


class MediaTypeClassifier:
    """
    Allow-list check for uploaded video media types.

    A media type is supported when it contains any allowed token as a
    case-insensitive substring, so ``video/mp4`` and ``video/x-matroska-mkv``
    style values both match their container token.
    """

    def __init__(self, allowed_tokens: Iterable[str] = DEFAULT_VIDEO_TOKENS) -> None:
        self.allowed_tokens = tuple(token.lower() for token in allowed_tokens)

    def is_supported(self, media_type: str) -> bool:
        lowered = media_type.lower()
        return any(token in lowered for token in self.allowed_tokens)

    def validate(self, content_type: str | None) -> str:
        """
        Parse ``content_type`` and ensure it is an accepted video type.

        Returns:
            str: The parsed media type.

        Raises:
            BadRequestError: If the header cannot be parsed.
            UnsupportedMediaTypeError: If the type is not on the allow-list.
        """
        media_type = parse_media_type(content_type)
        if not self.is_supported(media_type):
            raise UnsupportedMediaTypeError(
                f"Unsupported video type {media_type}",
                details={"media_type": media_type, "allowed": list(self.allowed_tokens)},
            )
        return media_type


__all__ = ["DEFAULT_VIDEO_TOKENS", "MediaTypeClassifier", "parse_media_type"]
