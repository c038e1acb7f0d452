"""Redaction of chat payloads for debug logs.

Feed pages carry message bodies, profile data and phone numbers.  Before a
payload is logged, :func:`redact_for_log` replaces credentials and personal
fields (``phone_number``, ``email``, ``profile``) with ``<redacted>``, and
user-written text (the ``text`` of every entry of a ``messages`` list,
discussion previews, search terms) with its length only.

Ids, clocks and timestamps are kept, so a log still shows which entities a
page carried.
"""

from __future__ import annotations

from typing import Any

_REDACTED = "<redacted>"

_CREDENTIAL_KEYS: frozenset[str] = frozenset(
    {"authorization", "cookie", "token", "access_token", "refresh_token", "push_tokens"}
)

_PERSONAL_KEYS: frozenset[str] = frozenset({"phone_number", "email", "profile"})

# Free text typed by a user, outside of a message.
_TEXT_KEYS: frozenset[str] = frozenset({"first_message", "latest_message", "term"})


def _redact_text(text: Any) -> Any:
    if text is None:
        return None
    if isinstance(text, str):
        return f"<redacted:{len(text)} chars>"
    return _REDACTED


def _redact_message(message: Any, max_string: int) -> Any:
    redacted = redact_for_log(message, max_string=max_string)
    if isinstance(redacted, dict) and "text" in redacted:
        redacted["text"] = _redact_text(message["text"])
    return redacted


def _redact_entry(key: str, value: Any, max_string: int) -> Any:
    lowered = key.lower()
    if lowered in _CREDENTIAL_KEYS or lowered in _PERSONAL_KEYS:
        return _REDACTED
    if lowered in _TEXT_KEYS:
        return _redact_text(value)
    if lowered == "messages" and isinstance(value, list):
        return [_redact_message(m, max_string) for m in value]
    return redact_for_log(value, max_string=max_string)


def redact_for_log(value: Any, *, max_string: int = 512) -> Any:
    """Return a copy of a decoded JSON payload that is safe to log at DEBUG.

    Works on request params, raw response bodies and ``model_dump`` output
    alike.  Strings longer than *max_string* are truncated.
    """
    if isinstance(value, dict):
        return {str(k): _redact_entry(str(k), v, max_string) for k, v in value.items()}
    if isinstance(value, list):
        return [redact_for_log(v, max_string=max_string) for v in value]
    if isinstance(value, str) and len(value) > max_string:
        return f"{value[:max_string]}…<truncated>"
    return value
