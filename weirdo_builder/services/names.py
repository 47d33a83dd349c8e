from __future__ import annotations

import re
import time
from dataclasses import dataclass, field
from typing import Iterable, List

NAME_MAX_LENGTH = 50
MAX_SUFFIX = 1000

RESERVED_WORDS = (
    "admin",
    "administrator",
    "system",
    "root",
    "null",
    "undefined",
    "default",
    "test",
    "demo",
    "sample",
    "example",
)

SUGGESTION_DESCRIPTORS = ("Elite", "Advanced", "Special", "Prime", "Alpha", "Beta")
FALLBACK_SUGGESTIONS = ["My Warband", "New Warband", "Untitled Warband"]

_EVENT_HANDLER_RE = re.compile(r"on\w+=", re.IGNORECASE)
_JAVASCRIPT_RE = re.compile(r"javascript:", re.IGNORECASE)
_DISALLOWED_RE = re.compile(r"[^\w\s\-]")
_WHITESPACE_RE = re.compile(r"\s+")


@dataclass
class NameValidation:
    valid: bool
    available: bool
    sanitized: str
    errors: List[str] = field(default_factory=list)
    suggestions: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "valid": self.valid,
            "available": self.available,
            "sanitized": self.sanitized,
            "errors": list(self.errors),
            "suggestions": list(self.suggestions),
        }


def sanitize_name(name) -> str:
    if not isinstance(name, str):
        return ""
    cleaned = name.replace("<", "").replace(">", "")
    cleaned = _JAVASCRIPT_RE.sub("", cleaned)
    cleaned = _EVENT_HANDLER_RE.sub("", cleaned)
    cleaned = _DISALLOWED_RE.sub("", cleaned)
    cleaned = _WHITESPACE_RE.sub(" ", cleaned).strip()
    return cleaned[:NAME_MAX_LENGTH]


def name_taken(name: str, existing: Iterable[str]) -> bool:
    normalized = name.lower()
    return any(candidate.lower() == normalized for candidate in existing)


def is_reserved(name: str) -> bool:
    normalized = name.lower().strip()
    if normalized in RESERVED_WORDS:
        return True
    return any(normalized.startswith(word + " ") for word in RESERVED_WORDS)


def unique_name(base: str, existing: Iterable[str]) -> str:
    """Return ``base`` or the first free ``"<base> vN"`` variant, starting at v2."""

    existing = list(existing)
    candidate = base
    counter = 1
    while name_taken(candidate, existing):
        counter += 1
        if counter > MAX_SUFFIX:
            return f"{base} {str(int(time.time() * 1000))[-6:]}"
        candidate = f"{base} v{counter}"
    return candidate


def validate_name(name, existing: Iterable[str]) -> NameValidation:
    existing = list(existing)
    sanitized = sanitize_name(name)
    if not sanitized:
        return NameValidation(
            valid=False,
            available=False,
            sanitized="",
            errors=["Name cannot be empty"],
            suggestions=["Provide a name with valid characters"],
        )

    errors: list[str] = []
    suggestions: list[str] = []
    if isinstance(name, str) and len(name.strip()) > NAME_MAX_LENGTH:
        errors.append(f"Name must be {NAME_MAX_LENGTH} characters or less")
        suggestions.append("Shorten the name")
    if is_reserved(sanitized):
        errors.append("Name uses reserved words")
        suggestions.append("Choose a different name that doesn't use reserved words")

    available = not name_taken(sanitized, existing)
    if not available:
        errors.append("Name is already taken")
        suggestions.extend(suggest_names(sanitized, existing))

    return NameValidation(
        valid=not errors,
        available=available,
        sanitized=sanitized,
        errors=errors,
        suggestions=suggestions,
    )


def suggest_names(original, existing: Iterable[str], count: int = 3) -> list[str]:
    existing = list(existing)
    sanitized = sanitize_name(original)
    if not sanitized:
        return list(FALLBACK_SUGGESTIONS[:count])

    suggestions: list[str] = []
    for index in range(1, count + 1):
        candidate = f"{sanitized} {index}"
        if not name_taken(candidate, existing):
            suggestions.append(candidate)
    for descriptor in SUGGESTION_DESCRIPTORS:
        if len(suggestions) >= count:
            break
        candidate = f"{descriptor} {sanitized}"
        if not name_taken(candidate, existing):
            suggestions.append(candidate)
    if not suggestions:
        suggestions.append(unique_name(sanitized, existing))
    return suggestions[:count]
