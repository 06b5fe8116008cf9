"""Normalize a finished job's output payload into one media URL.

Providers put the result at varying depths: a bare URL string, a list of
URLs, a list whose first item is an object of URLs, or an object of URLs.
Each shape gets its own decoder, tried in a fixed order.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from typing import Any, Callable

_URL_RE = re.compile(r"^https?://", re.IGNORECASE)


def is_url(value: Any) -> bool:
    """True for absolute http(s) URL strings."""
    return isinstance(value, str) and bool(_URL_RE.match(value))


def _first_url_value(mapping: Mapping) -> str | None:
    for value in mapping.values():
        if is_url(value):
            return value
    return None


def _is_sequence(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray))


def _decode_string(output: Any) -> str | None:
    return output if is_url(output) else None


def _decode_string_list(output: Any) -> str | None:
    if _is_sequence(output) and output and is_url(output[0]):
        return output[0]
    return None


def _decode_object_list(output: Any) -> str | None:
    if _is_sequence(output) and output and isinstance(output[0], Mapping):
        return _first_url_value(output[0])
    return None


def _decode_object(output: Any) -> str | None:
    if isinstance(output, Mapping):
        return _first_url_value(output)
    return None


_DECODERS: tuple[Callable[[Any], str | None], ...] = (
    _decode_string,
    _decode_string_list,
    _decode_object_list,
    _decode_object,
)


def extract_url(output: Any) -> str | None:
    """Return the first usable URL in *output*, or None.

    Never raises: a missing URL is a normal "no usable output" outcome.
    """
    if output is None:
        return None
    for decode in _DECODERS:
        url = decode(output)
        if url:
            return url
    return None
