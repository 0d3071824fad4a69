import json
import os
from pathlib import Path
from typing import Any, Dict, Optional

import pdfplumber

from .config import DEFAULT_PREFERENCES


def _load_json(path: str) -> Any:
    if not os.path.exists(path):
        raise FileNotFoundError(f"file not found: {path}")
    try:
        return json.loads(Path(path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(f"{path} is not valid JSON: {e}") from e


def load_resume_data(path: str) -> Dict[str, Any]:
    data = _load_json(path)
    if not isinstance(data, dict):
        raise ValueError(f"{path}: resume JSON must be an object")
    return data


def read_pdf_text(path: str) -> str:
    with pdfplumber.open(path) as pdf:
        parts = [(p.extract_text() or "") for p in pdf.pages]
    return "\n".join(parts).strip()


def read_resume_text(path: Optional[str]) -> str:
    """Raw resume text from a .pdf or a plain-text file. No path means no text."""
    if not path:
        return ""
    if not os.path.exists(path):
        raise FileNotFoundError(f"resume not found: {path}")
    if path.lower().endswith(".pdf"):
        return read_pdf_text(path)
    return Path(path).read_text(encoding="utf-8", errors="ignore").strip()


def load_preferences(path: Optional[str] = None) -> Dict[str, Any]:
    """Stored defaults, overridden key by key by the user's file."""
    prefs = dict(DEFAULT_PREFERENCES)
    if path:
        user = _load_json(path)
        if not isinstance(user, dict):
            raise ValueError(f"{path}: preferences must be a JSON object")
        prefs.update(user)
    return prefs


def load_cover_letter(path: Optional[str]) -> str:
    if not path:
        return ""
    if not os.path.exists(path):
        raise FileNotFoundError(f"cover letter not found: {path}")
    return Path(path).read_text(encoding="utf-8", errors="ignore").strip()


def load_text(path: Optional[str]) -> str:
    if not path:
        return ""
    return Path(path).read_text(encoding="utf-8", errors="ignore").strip()
