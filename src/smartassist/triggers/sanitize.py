"""Param sanitizers applied to directive arguments before execution.

Directive arguments come from model output and are untrusted. Each param
is cleaned by a sanitizer picked from its name:

- ``email`` / ``mail``                     -> sanitize_email
- ``url`` / ``link``                       -> sanitize_url
- ``id`` / ``quantity`` / ``count`` / ``number`` -> sanitize_number
- anything else                            -> sanitize_text
"""

from __future__ import annotations

import re
from typing import Any
from urllib.parse import urlsplit

_TAG_RE = re.compile(r"<[^>]*>")
_CONTROL_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
_WHITESPACE_RE = re.compile(r"\s+")
_LEADING_INT_RE = re.compile(r"^\s*[+-]?(\d+)")
_EMAIL_LOCAL_BAD_RE = re.compile(r"[^a-zA-Z0-9!#$%&'*+/=?^_`{|}~.-]")
_DOMAIN_LABEL_BAD_RE = re.compile(r"[^a-z0-9-]")

ALLOWED_URL_SCHEMES = frozenset({"http", "https", "mailto"})

_EMAIL_KEYS = ("email", "mail")
_URL_KEYS = ("url", "link")
_NUMBER_KEYS = ("id", "quantity", "count", "number")


def _as_str(value: Any) -> str:
    return "" if value is None else str(value)


def sanitize_text(value: Any) -> str:
    """Single-line plain text: no tags, no control characters, collapsed spaces."""
    text = _TAG_RE.sub("", _as_str(value))
    text = _CONTROL_RE.sub("", text)
    return _WHITESPACE_RE.sub(" ", text).strip()


def sanitize_textarea(value: Any) -> str:
    """Like sanitize_text but keeps line breaks."""
    text = _TAG_RE.sub("", _as_str(value)).replace("\r\n", "\n")
    text = _CONTROL_RE.sub("", text)
    lines = [re.sub(r"[ \t\r\f\v]+", " ", line).strip() for line in text.split("\n")]
    return "\n".join(lines).strip()


def sanitize_number(value: Any) -> int:
    """Non-negative integer from the leading digits of value; 0 if none."""
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return abs(value)
    if isinstance(value, float):
        return abs(int(value))
    match = _LEADING_INT_RE.match(_as_str(value))
    return int(match.group(1)) if match else 0


def sanitize_email(value: Any) -> str:
    """A plausible email address, or "" if value cannot be one."""
    text = _as_str(value).strip()
    if text.count("@") != 1:
        return ""

    local, domain = text.split("@")
    local = _EMAIL_LOCAL_BAD_RE.sub("", local)
    if not local:
        return ""

    labels = []
    for label in domain.lower().split("."):
        label = _DOMAIN_LABEL_BAD_RE.sub("", label).strip("-")
        if label:
            labels.append(label)
    if len(labels) < 2:
        return ""

    return f"{local}@{'.'.join(labels)}"


def sanitize_url(value: Any) -> str:
    """A URL with an allowed scheme, or "" if value is unsafe.

    Schemeless values get ``http://`` unless they are relative
    (``/path``, ``#frag``, ``?query``).
    """
    text = _CONTROL_RE.sub("", _as_str(value))
    text = _WHITESPACE_RE.sub("", text)
    if not text:
        return ""
    if text[0] in "/#?":
        return text

    scheme = urlsplit(text).scheme.lower()
    if not scheme or "." in scheme:
        text = f"http://{text}"
        scheme = "http"
    if scheme not in ALLOWED_URL_SCHEMES:
        return ""
    return text


def sanitize_param(key: str, value: Any) -> Any:
    """Sanitize one param by the type inferred from its name."""
    name = key.lower()
    if any(k in name for k in _EMAIL_KEYS):
        return sanitize_email(value)
    if any(k in name for k in _URL_KEYS):
        return sanitize_url(value)
    if any(k in name for k in _NUMBER_KEYS):
        return sanitize_number(value)
    return sanitize_text(value)
