"""
portal/ai/guards.py
Input guard for the AI assistants

Rejects input before it reaches the model:
1. Oversized input (AI_MAX_INPUT_CHARS across all fields)
2. Attempts to override the assistant's instructions
"""
import logging
import re
from typing import Dict, Optional

from portal.config import settings
from portal.exceptions import AIInputRejectedError

logger = logging.getLogger(__name__)


class InputGuard:
    """
    Hard refusal layer for assistant requests.

    Only free-text questions are pattern-checked: submissions and log
    snippets legitimately quote arbitrary text.
    """

    INJECTION_PATTERNS = [
        r"\bignore\s+(all\s+)?(the\s+)?(previous|above|prior|your)\s+(instructions|rules|prompts?)\b",
        r"\bdisregard\s+(all\s+)?(the\s+)?(previous|above|prior|your)\s+(instructions|rules)\b",
        r"\bforget\s+(all\s+)?(your|the|previous)\s+(instructions|rules)\b",
        r"\b(reveal|show|print)\s+(me\s+)?(your|the)\s+(system\s+)?prompt\b",
        r"\bsystem\s+prompt\b",
        r"\bjailbreak\b",
        r"\bdeveloper\s+mode\b",
        r"\bpretend\s+(you'?re|to\s+be)\b",
    ]

    @classmethod
    def find_injection(cls, text: str) -> Optional[str]:
        """Matched phrase if the text tries to override instructions, else None."""
        lowered = text.lower()
        for pattern in cls.INJECTION_PATTERNS:
            match = re.search(pattern, lowered)
            if match:
                logger.warning(f"[AI Guard] Injection pattern detected: {match.group()}")
                return match.group()
        return None

    @classmethod
    def check_size(cls, fields: Dict[str, Optional[str]]) -> None:
        limit = settings.AI_MAX_INPUT_CHARS
        total = sum(len(v) for v in fields.values() if v)
        if total > limit:
            logger.warning(f"[AI Guard] Input too large: {total} > {limit} chars")
            raise AIInputRejectedError(
                f"Input is too long ({total} characters). The limit is {limit}."
            )

    @classmethod
    def check_question(cls, text: str) -> None:
        if cls.find_injection(text):
            raise AIInputRejectedError(
                "The question contains instructions the assistant cannot follow. "
                "Please rephrase it as a question about the portal or your course."
            )


def enforce_input_rules(fields: Dict[str, Optional[str]], question_field: Optional[str] = None) -> None:
    """Single entry point used by every assistant."""
    InputGuard.check_size(fields)
    if question_field and fields.get(question_field):
        InputGuard.check_question(fields[question_field])
