"""Text helpers for labels and stored values. Pure functions, zero I/O."""

from __future__ import annotations

import json
from typing import Any


def format_display_name(field_key: str | None) -> str:
    """
    Turn a custom field key into a human label.

    Splits on ``_``, ``-`` and before every upper-case letter; single-letter
    words are upper-cased, longer words capitalized.

        >>> format_display_name("employee_number")
        'Employee Number'
        >>> format_display_name("costCenterCode")
        'Cost Center Code'
        >>> format_display_name("IPAddress")
        'I P Address'
    """
    if field_key is None or not field_key.strip():
        return ""

    words: list[str] = []
    current = ""
    for ch in field_key:
        if ch in "_-":
            if current:
                words.append(current)
                current = ""
        elif ch.isupper() and current:
            words.append(current)
            current = ch
        else:
            current += ch
    if current:
        words.append(current)

    return " ".join(w.upper() if len(w) == 1 else w[0].upper() + w[1:] for w in words)


def value_as_text(value: Any) -> str | None:
    """Render a JSON value as the text stored in a custom field."""
    if value is None:
        return None
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False)
