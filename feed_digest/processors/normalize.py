from __future__ import annotations

import re

_whitespace_re = re.compile(r"\s+")
_control_chars_re = re.compile(r"[\u0000-\u0008\u000B\u000C\u000E-\u001F\u007F]")


def normalize_plain_text(text: str | None) -> str:
    """Normalize a headline or link for display.

    - Strip BOM
    - Remove control characters
    - Collapse whitespace (feeds often wrap titles across lines)
    """
    if not text:
        return ""

    if text.startswith("\ufeff"):
        text = text.lstrip("\ufeff")

    text = _control_chars_re.sub(" ", text)
    return _whitespace_re.sub(" ", text).strip()
