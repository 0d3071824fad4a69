"""
utils.py - Text helpers shared by the surveyor, reconciler and actuator
"""
import re
from typing import List, Optional


def normalize(s: str) -> str:
    """Collapse runs of whitespace to one space and trim."""
    return re.sub(r"\s+", " ", (s or "").strip())


def ci_match_label(val: str, labels: List[str]) -> Optional[str]:
    """
    The entry of labels equal to val ignoring case and spacing, as spelled in labels.
    None when nothing matches.
    """
    wanted = normalize(val).casefold()
    return next((lab for lab in labels if normalize(lab).casefold() == wanted), None)


def quote_attr(value: str) -> str:
    """Quote a value for use inside a CSS attribute selector."""
    return '"' + str(value).replace("\\", "\\\\").replace('"', '\\"') + '"'


def css_escape_ident(ident: str) -> str:
    """
    Escape an identifier for a CSS `#id` selector, like the browser's CSS.escape.
    Plain ids (letters, digits after the first char, '-' and '_') pass through unchanged.
    """
    out = []
    for i, ch in enumerate(ident):
        code = ord(ch)
        # a digit may not start the ident, even after a single leading '-'
        leading_digit = ch.isdigit() and (i == 0 or (i == 1 and ident[0] == "-"))
        if ch.isalnum() and code < 128 and not leading_digit:
            out.append(ch)
        elif ch in "-_" and not (i == 0 and ch == "-" and len(ident) == 1):
            out.append(ch)
        elif code >= 128:
            out.append(ch)
        elif leading_digit:
            out.append(f"\\{code:x} ")
        else:
            out.append("\\" + ch)
    return "".join(out)


def shorten(text: str, limit: int = 50) -> str:
    text = text or ""
    return text[:limit] + ("..." if len(text) > limit else "")
