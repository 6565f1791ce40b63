"""
Recipient Normalization
=======================

Turns raw directory email fields into a clean recipient list.
"""

import re
from typing import Iterable, List, Optional

_ANGLE_ADDRESS = re.compile(r"<([^>]+)>")
_LIST_SEPARATOR = re.compile(r"\s*,\s*")


def extract_first_email_address(value: Optional[str]) -> str:
    """
    First address out of a directory email field.

    Handles ``Name <a@b.com>`` and comma separated lists; returns an empty
    string when nothing usable is left.
    """
    if not value:
        return ""
    trimmed = value.strip()
    angle = _ANGLE_ADDRESS.search(trimmed)
    candidate = (angle.group(1) if angle else trimmed).strip()
    return _LIST_SEPARATOR.split(candidate)[0].strip()


def unique_emails(values: Iterable[Optional[str]]) -> List[str]:
    """Normalize and de-duplicate case-insensitively, keeping the first spelling."""
    seen = set()
    result = []
    for value in values:
        email = extract_first_email_address(value)
        if not email:
            continue
        key = email.lower()
        if key in seen:
            continue
        seen.add(key)
        result.append(email)
    return result


def exclude_address(recipients: Iterable[str], address: Optional[str]) -> List[str]:
    """Drop ``address`` (case-insensitive); a missing address drops nothing."""
    excluded = extract_first_email_address(address).lower()
    if not excluded:
        return list(recipients)
    return [r for r in recipients if r.lower() != excluded]
