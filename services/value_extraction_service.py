"""
Value Extraction Service
Pulls numeric and quoted literals out of question text.
"""

import re
from typing import Optional

NUMBER_RE = re.compile(r"[0-9]+")
QUOTED_RE = re.compile(r"\"([^\"]+)\"|'([^']+)'")


class ValueExtractionService:
    """Pure helpers for literal extraction. Both functions are total."""

    @staticmethod
    def extract_number(text: str | None) -> Optional[int]:
        """
        Return the first run of decimal digits as an integer.

        Args:
            text: Question text

        Returns:
            Integer value, or None if the text has no digits
        """
        if not text:
            return None
        match = NUMBER_RE.search(text)
        return int(match.group(0)) if match else None

    @staticmethod
    def extract_quoted_value(text: str | None) -> Optional[str]:
        """
        Return the first substring enclosed in matching single or double quotes.

        'show "Bob's Diner"' yields Bob's Diner; an unmatched quote yields None.
        """
        if not text:
            return None
        match = QUOTED_RE.search(text)
        if not match:
            return None
        return match.group(1) if match.group(1) is not None else match.group(2)
