"""
Redaction of values that end up in log records.

Statement parameters are catalog input (titles, summaries, names) plus the
occasional connection option. Credentials are masked; long free text such as
a book summary is shortened so a slow-statement warning stays one line.
"""

from __future__ import annotations

import re
from typing import Any, Iterable

REDACTED_VALUE = "***"
MAX_LOGGED_TEXT = 64

_SENSITIVE_KEYS = ("password", "passwd", "pwd", "secret", "token", "apikey", "sslkey")
# Credential shapes only; plain catalog text is never masked.
_CREDENTIAL_RE = re.compile(
    r"^\s*bearer\s+[\w.~+/-]{12,}=*\s*$"
    r"|(?:password|passwd|pwd|secret|token|api[_-]?key)(?:\s*=\s*|:)\S"
    r"|authorization\s*:\s*\S"
    r"|://[^/\s:@]+:[^/\s@]+@",
    re.I,
)


def _compact(value: str) -> str:
    return "".join(ch for ch in value.lower() if ch.isalnum())


def is_sensitive_key(key: str) -> bool:
    compact = _compact(key)
    return any(token in compact for token in _SENSITIVE_KEYS)


def is_sensitive_value(value: str) -> bool:
    return bool(_CREDENTIAL_RE.search(value))


def shorten(value: str, limit: int = MAX_LOGGED_TEXT) -> str:
    if len(value) <= limit:
        return value
    return f"{value[: limit - 3]}...({len(value)} chars)"


def redact_query_params(query: dict[str, str]) -> dict[str, str]:
    return {key: REDACTED_VALUE if is_sensitive_key(key) else val for key, val in query.items()}


def redact_value(value: Any, *, key: str | None = None) -> Any:
    if key is not None and is_sensitive_key(str(key)):
        return REDACTED_VALUE
    if isinstance(value, dict):
        return {k: redact_value(v, key=str(k)) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return type(value)(redact_value(item) for item in value)
    if isinstance(value, str):
        return REDACTED_VALUE if is_sensitive_value(value) else shorten(value)
    return value


def redact_params(params: Iterable[Any]) -> list[Any]:
    return [redact_value(value) for value in params]
