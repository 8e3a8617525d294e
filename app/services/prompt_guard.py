"""Regex screening for common prompt-injection phrasings.

This is a coarse filter, not a security boundary: it rejects the obvious
"ignore your instructions" style messages before they cost an upstream call.
"""

from __future__ import annotations

import re

INJECTION_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"ignore\s+(all\s+|any\s+)?(the\s+)?(previous|prior|above|earlier)\s+(instructions|prompts?|rules)",
        r"disregard\s+(all\s+|any\s+)?(the\s+)?(previous|prior|above|your)\s+(instructions|prompts?|rules)",
        r"forget\s+(all\s+|everything\s+)?(your|the|previous)\s+(instructions|rules|prompts?)",
        r"(reveal|show|print|repeat|output)\s+(me\s+)?(your|the)\s+(system\s+)?(prompt|instructions)",
        r"\bsystem\s+prompt\b",
        r"\byou\s+are\s+now\s+(a|an|in)\b",
        r"\bact\s+as\s+(a|an)\s+(different|new)\b",
        r"\b(jailbreak|DAN\s+mode|developer\s+mode)\b",
        r"<\s*/?\s*(system|assistant)\s*>",
        r"(이전|위의?)\s*(지시|명령|프롬프트)(사항)?[을를]?\s*(무시|잊어)",
        r"시스템\s*프롬프트",
    )
)


def find_injection(message: str) -> str | None:
    """Return the first matching pattern source, or None if the message is clean."""
    for pattern in INJECTION_PATTERNS:
        if pattern.search(message):
            return pattern.pattern
    return None
