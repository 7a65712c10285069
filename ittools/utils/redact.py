"""
Log redaction helpers for tool arguments.

Tool inputs routinely carry passwords, HMAC keys, OTP secrets and payloads up
to a megabyte. Before arguments reach a log line they go through
`redact_for_log`, which masks sensitive values and shortens long ones.

Usage:
    from ittools.utils.redact import redact_for_log

    logger.error("Tool failed", extra={"arguments": redact_for_log(arguments)})

Notes:
- This is **for logs only**. Never use it on the arguments handed to a tool.
- Redaction is best-effort; expand KEY_PATTERNS as tools are added.
"""

from __future__ import annotations

import re
from typing import Any, Dict, Mapping

# Case-insensitive key substrings that imply sensitive values
KEY_PATTERNS = [
    "password",
    "passwd",
    "secret",
    "token",
    "key",
    "hash",
    "auth",
    "credential",
    "mnemonic",
    "seed",
    "salt",
    "vault",
]

# Regexes that suggest a value *content* is sensitive
VALUE_PATTERNS = [
    re.compile(r"^Bearer\s+[A-Za-z0-9\-\._~\+\/]+=*$", re.IGNORECASE),
    re.compile(r"^eyJ[a-zA-Z0-9_\-]+?\.[a-zA-Z0-9_\-]+?\.[a-zA-Z0-9_\-]+$"),  # JWT
    re.compile(r"^\$2[aby]?\$\d{2}\$[./A-Za-z0-9]{53}$"),  # bcrypt
    re.compile(r"^Basic\s+[A-Za-z0-9+/]+=*$", re.IGNORECASE),
]

REDACTED = "********"

# Longer strings are logged as a prefix plus their length
PREVIEW_CHARS = 200


def _looks_sensitive_key(key: str) -> bool:
    k = key.lower()
    return any(p in k for p in KEY_PATTERNS)


def _looks_sensitive_value(val: Any) -> bool:
    if not isinstance(val, str):
        return False
    s = val.strip()
    if not s:
        return False
    return any(rx.search(s) for rx in VALUE_PATTERNS)


def _redact_primitive(val: Any) -> Any:
    if isinstance(val, str):
        if len(val) <= 8:
            return REDACTED
        return f"{REDACTED}({len(val)})"
    return REDACTED


def _preview(val: str) -> str:
    if len(val) <= PREVIEW_CHARS:
        return val
    return f"{val[:PREVIEW_CHARS]}...({len(val)} chars)"


def redact_for_log(obj: Any) -> Any:
    """
    Return a structurally similar object with sensitive material masked.

    - Dict: redact by key heuristics; recurse values.
    - List/tuple: recurse each element.
    - String: redact if it matches sensitive value patterns, else shorten.
    - Everything else: pass through.
    """
    if isinstance(obj, Mapping):
        out: Dict[str, Any] = {}
        for k, v in obj.items():
            if _looks_sensitive_key(str(k)) or _looks_sensitive_value(v):
                out[k] = _redact_primitive(v)
            else:
                out[k] = redact_for_log(v)
        return out
    if isinstance(obj, (list, tuple)):
        return type(obj)(redact_for_log(x) for x in obj)
    if isinstance(obj, str):
        return _redact_primitive(obj) if _looks_sensitive_value(obj) else _preview(obj)
    return obj
