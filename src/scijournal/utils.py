"""Small helpers shared by the submission workflow and the CLI."""

from __future__ import annotations

import re

EMAIL_PATTERN = re.compile(r"\S+@\S+\.\S+")


def is_valid_email(value: str) -> bool:
    """Loose shape check: something@something.something, no whitespace."""
    if not value:
        return False
    return EMAIL_PATTERN.fullmatch(value.strip()) is not None


def split_keywords(value: str) -> list[str]:
    """Split a comma separated keyword string, trimming and dropping blanks."""
    return [item.strip() for item in value.split(",") if item.strip()]
