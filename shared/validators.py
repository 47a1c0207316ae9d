"""
Email validators — framework-agnostic, pure functions.

All validators are stateless; configuration such as the domain allow-list
is passed in by the caller.
"""

from __future__ import annotations

import re
from typing import Optional, Sequence

import validators as _validators

# Throwaway names people type when they do not intend to use the address
_PLACEHOLDER_PATTERNS = [
    re.compile(rf"^{word}\d*$", re.IGNORECASE)
    for word in (
        "test",
        "fake",
        "dummy",
        "temp",
        "sample",
        "example",
        "admin",
        "null",
        "spam",
        "user",
        "guest",
        "visitor",
    )
]

# Shapes typical of generated addresses. Also used by security analytics.
SUSPICIOUS_LOCAL_PART_PATTERNS = [
    re.compile(r"^[a-z]{1,5}\d{3,}$", re.IGNORECASE),  # short name + many digits
    re.compile(r"^[a-z]+\d{3,}$", re.IGNORECASE),  # any name + 3+ digits
    re.compile(r"^[a-z]\d+$", re.IGNORECASE),  # single letter + digits
    re.compile(r"^\d+[a-z]*$", re.IGNORECASE),  # starts with digits
]

_EXTRA_SUSPICIOUS_PATTERNS = [
    re.compile(r"^[a-z]{1,3}\d{2,}$", re.IGNORECASE),  # very short + digits
    re.compile(r"^[a-z]+\.[a-z]+\d{3,}$", re.IGNORECASE),  # first.last + 3+ digits
]

MIN_LOCAL_PART_LENGTH = 3


def normalize_email(email: Optional[str]) -> str:
    """Strip and lower-case *email*; ``None`` becomes ``""``."""
    return (email or "").strip().lower()


def local_part(email: str) -> str:
    """Return the part of *email* before the ``@`` (lower-cased)."""
    return email.split("@", 1)[0].lower()


def validate_email_format(email: str) -> bool:
    """Return True if *email* is a syntactically valid address."""
    return bool(_validators.email(email))


def validate_email_domain(email: str, allowed_domains: Sequence[str]) -> bool:
    """Return True if *email* belongs to one of *allowed_domains*.

    An empty allow-list accepts every domain.
    """
    if not allowed_domains:
        return True
    domain = email.rsplit("@", 1)[-1].lower()
    return domain in {d.lower() for d in allowed_domains}


def matches_suspicious_pattern(email: str) -> bool:
    """Return True if the local part of *email* has a generated-looking shape."""
    part = local_part(email)
    return any(p.match(part) for p in SUSPICIOUS_LOCAL_PART_PATTERNS)


def detect_fake_email(email: str) -> Optional[str]:
    """Classify *email* as likely fake.

    Returns:
        A short reason string when the address looks fake, ``None`` when it
        passes every heuristic.
    """
    part = local_part(email)

    if len(part) < MIN_LOCAL_PART_LENGTH:
        return "too_short"
    if part.isdigit():
        return "all_digits"
    if any(p.match(part) for p in _PLACEHOLDER_PATTERNS):
        return "placeholder_name"
    if any(p.match(part) for p in SUSPICIOUS_LOCAL_PART_PATTERNS):
        return "suspicious_pattern"
    if any(p.match(part) for p in _EXTRA_SUSPICIOUS_PATTERNS):
        return "suspicious_pattern"
    return None
