"""
Input validation utilities for contact data and provider profiles.
"""

import re
from typing import Any, Dict, List, Optional


def validate_phone(phone: str) -> bool:
    """
    Validate phone number format.
    Accepts international format with optional + prefix and local
    numbers with a trunk 0, e.g. (011) 98765-4321 or 0800 123 4567.

    Args:
        phone: Phone number string

    Returns:
        True if valid format, False otherwise
    """
    if not phone or not isinstance(phone, str):
        return False

    # Remove spaces, dashes, dots, parentheses
    cleaned = re.sub(r'[\s\-\.\(\)]', '', phone)

    pattern = r'^\+?\d{7,15}$'
    return bool(re.match(pattern, cleaned))


def validate_postal_code(postal_code: str) -> bool:
    """Validate a Brazilian CEP ('00000-000' or 8 digits)."""
    if not postal_code or not isinstance(postal_code, str):
        return False
    return len(re.sub(r'\D', '', postal_code)) == 8


def sanitize_text(text: str, max_length: Optional[int] = None) -> str:
    """
    Sanitize user input text.

    Args:
        text: Input text
        max_length: Optional maximum length

    Returns:
        Sanitized text
    """
    if not text:
        return ""

    # Remove control characters except newlines and tabs
    sanitized = re.sub(r'[\x00-\x08\x0B-\x0C\x0E-\x1F\x7F]', '', str(text))

    sanitized = sanitized.strip()

    if max_length and len(sanitized) > max_length:
        sanitized = sanitized[:max_length]

    return sanitized


def missing_fields(values: Dict[str, Any]) -> List[str]:
    """
    Names of required values that are None or blank.

    Args:
        values: Mapping of field name to submitted value

    Returns:
        Field names in the order given
    """
    missing = []
    for name, value in values.items():
        if value is None:
            missing.append(name)
        elif isinstance(value, str) and not value.strip():
            missing.append(name)
    return missing
