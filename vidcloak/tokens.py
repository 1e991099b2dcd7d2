"""Token codec: the opaque ``vid`` value is Base64 of the UTF-8 origin URL."""

import base64
import binascii
import re

from .errors import Err, FailureKind, Ok, Result

_ASCII_WHITESPACE = re.compile(r"[\t\n\f\r ]+")


def encode_token(url: str) -> str:
    """Mint the token for an origin URL."""
    return base64.b64encode(url.encode("utf-8")).decode("ascii")


def decode_token(token: str | None) -> Result[str]:
    """
    Decode a token into the candidate origin URL.

    Follows browser ``atob`` rules: ASCII whitespace is dropped and missing
    padding is accepted, anything else outside the standard alphabet fails.
    The result is a plain string; it is not validated as a URL here.

    Args:
        token: Raw ``vid`` query value, or None when absent

    Returns:
        Ok with the decoded string, or Err(MISSING_TOKEN / INVALID_TOKEN)
    """
    if not token:
        return Err(FailureKind.MISSING_TOKEN)

    compact = _ASCII_WHITESPACE.sub("", token)
    remainder = len(compact) % 4
    if remainder == 1:
        return Err(FailureKind.INVALID_TOKEN)
    if remainder:
        compact += "=" * (4 - remainder)

    try:
        raw = base64.b64decode(compact, validate=True)
        return Ok(raw.decode("utf-8"))
    except (binascii.Error, ValueError):
        return Err(FailureKind.INVALID_TOKEN)
