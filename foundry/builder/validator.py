"""Shallow syntactic check for model-generated files.

JSON targets are parsed; everything else is scanned for balanced ``()``,
``{}`` and ``[]`` while skipping quoted spans. This only catches truncated
or bracket-corrupted output, not semantic errors.
"""

from __future__ import annotations

import json
from enum import Enum

_CLOSERS: dict[str, str] = {"(": ")", "{": "}", "[": "]"}
_OPENERS = frozenset(_CLOSERS)
_CLOSING = frozenset(_CLOSERS.values())


class ScanState(Enum):
    NORMAL = "normal"
    SINGLE = "single"
    DOUBLE = "double"
    BACKTICK = "backtick"
    ESCAPE = "escape"


_QUOTE_STATES: dict[str, ScanState] = {
    "'": ScanState.SINGLE,
    '"': ScanState.DOUBLE,
    "`": ScanState.BACKTICK,
}
_QUOTE_OF = {state: quote for quote, state in _QUOTE_STATES.items()}


def validate_json(content: str) -> str | None:
    try:
        json.loads(content)
    except json.JSONDecodeError as exc:
        return str(exc)
    return None


def validate_brackets(content: str) -> str | None:
    """Return a failure message if brackets outside quotes do not balance."""
    state = ScanState.NORMAL
    resume = ScanState.NORMAL
    stack: list[str] = []

    for char in content:
        if state is ScanState.ESCAPE:
            state = resume
            continue
        if char == "\\":
            resume, state = state, ScanState.ESCAPE
            continue

        if state is not ScanState.NORMAL:
            if char == _QUOTE_OF[state]:
                state = ScanState.NORMAL
            continue

        if char in _QUOTE_STATES:
            state = _QUOTE_STATES[char]
        elif char in _OPENERS:
            stack.append(_CLOSERS[char])
        elif char in _CLOSING:
            expected = stack.pop() if stack else None
            if expected != char:
                return f"Mismatched token: expected {expected or 'none'} but found {char}"

    if stack:
        return "Unbalanced brackets detected"
    return None


def validate_content(content: str, ext: str) -> str | None:
    """Validate *content* for a file with extension *ext* (e.g. ``".tsx"``).

    Returns ``None`` when the content passes, otherwise a short message that
    is fed back to the model on retry.
    """
    if ext.lower() == ".json":
        return validate_json(content)
    return validate_brackets(content)
