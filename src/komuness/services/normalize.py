"""Normalization of submitted publication fields.

Invalid prices and times are omitted rather than rejected unless ``strict``
is requested, in which case an InvalidPublicationError names the field.
"""

from __future__ import annotations

import json
import math
import re
from typing import TYPE_CHECKING, Any

from komuness.errors import InvalidPublicationError
from komuness.models.publication import Attachment, ExternalLink

if TYPE_CHECKING:
    from collections.abc import Iterable

_CURRENCY_CHARS = re.compile(r"[₡$,]")
_EVENT_TIME = re.compile(r"^\d{2}:\d{2}$")
_PHONE_SEPARATORS = re.compile(r"[\s\-+()]")


def parse_price(value: Any, *, field: str = "precio", strict: bool = False) -> float | None:
    """Parse a number or currency-formatted string such as ``"₡1,500"``."""
    if value is None:
        return None
    if isinstance(value, bool):
        return _invalid(field, strict)
    if isinstance(value, int | float):
        return float(value) if math.isfinite(value) else _invalid(field, strict)
    if not isinstance(value, str):
        return _invalid(field, strict)

    trimmed = value.strip()
    if not trimmed:
        return None
    cleaned = _CURRENCY_CHARS.sub("", trimmed).strip()
    if not cleaned:
        # a bare currency symbol means free
        return 0.0
    if "_" in cleaned:
        return _invalid(field, strict)
    try:
        number = float(cleaned)
    except ValueError:
        return _invalid(field, strict)
    return number if math.isfinite(number) else _invalid(field, strict)


def parse_event_time(value: Any, *, strict: bool = False) -> str | None:
    """Accept an ``HH:MM`` event time; anything else is dropped."""
    if value is None:
        return None
    if isinstance(value, str):
        trimmed = value.strip()
        if _EVENT_TIME.match(trimmed):
            return trimmed
    return _invalid("hora_evento", strict)


def parse_phone(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    return value.strip() or None


def format_link_url(url: str) -> str:
    """Classify a link value as e-mail, phone number or plain URL."""
    cleaned = url.strip()
    if "@" in cleaned and not cleaned.startswith("mailto:"):
        return f"mailto:{cleaned}"
    digits = _PHONE_SEPARATORS.sub("", cleaned)
    if digits.isdigit() and digits.isascii() and not cleaned.startswith("tel:"):
        return f"tel:{cleaned}"
    return cleaned


def _load_json_list(raw: Any) -> list[Any] | None:
    """Decode a form value that may already be a list or a JSON string.

    Returns None when the value decodes to something other than a list and
    raises ValueError when it is not valid JSON.
    """
    parsed = json.loads(raw) if isinstance(raw, str) else raw
    return parsed if isinstance(parsed, list) else None


def parse_external_links(raw: Any) -> list[ExternalLink] | None:
    """Parse submitted external links.

    None means nothing usable was submitted; an unparsable payload yields an
    empty list.
    """
    if not raw:
        return None
    try:
        entries = _load_json_list(raw)
    except ValueError:
        return []
    if entries is None:
        return None

    links: list[ExternalLink] = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        nombre, url = entry.get("nombre"), entry.get("url")
        if not isinstance(nombre, str) or not isinstance(url, str):
            continue
        if not nombre.strip() or not url.strip():
            continue
        links.append(ExternalLink(nombre=nombre.strip(), url=format_link_url(url)))
    return links


def parse_kept_images(raw: Any, live: Iterable[Attachment]) -> list[Attachment]:
    """Return the submitted kept images that exist on the live publication."""
    if not raw:
        return []
    try:
        entries = _load_json_list(raw) or []
    except ValueError:
        return []

    known = {(image.url, image.key) for image in live}
    kept: list[Attachment] = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        url, key = entry.get("url"), entry.get("key")
        if isinstance(url, str) and isinstance(key, str) and (url, key) in known:
            kept.append(Attachment(url=url, key=key))
    return kept


def _invalid(field: str, strict: bool) -> None:  # noqa: FBT001
    if strict:
        msg = f"Invalid value for {field}"
        raise InvalidPublicationError(msg)
    return None
