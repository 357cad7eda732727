"""
EIN (Employer Identification Number) utilities.

EIN format: XX-XXXXXXX (9 digits with hyphen after first 2)
"""

import re
from typing import Optional, Tuple


def normalize_ein(ein: str) -> Optional[str]:
    """
    Normalize EIN to standard XX-XXXXXXX format.

    Examples:
        >>> normalize_ein("753139219")
        '75-3139219'
        >>> normalize_ein("75 3139219")
        '75-3139219'
        >>> normalize_ein("invalid")
    """
    is_valid, formatted, _ = validate_and_format(ein)
    return formatted if is_valid else None


def ein_to_digits(ein: str) -> Optional[str]:
    """
    Convert EIN to digits-only format (for URLs and API calls).

    Returns:
        9-digit string without hyphen, or None if invalid
    """
    normalized = normalize_ein(ein)
    if normalized:
        return normalized.replace("-", "")
    return None


def validate_and_format(ein: str) -> Tuple[bool, Optional[str], Optional[str]]:
    """
    Validate EIN and return formatted version with error message.

    Returns:
        Tuple of (is_valid, formatted_ein, error_message)

    Examples:
        >>> validate_and_format("753139219")
        (True, '75-3139219', None)
        >>> validate_and_format("12345")
        (False, None, 'EIN must be exactly 9 digits (got 5)')
    """
    if not ein:
        return False, None, "EIN is required"

    ein = str(ein).strip()

    if re.search(r"[^\d\s-]", ein):
        return False, None, "EIN may only contain digits, spaces and hyphens"

    digits = re.sub(r"\D", "", ein)

    if len(digits) != 9:
        return False, None, f"EIN must be exactly 9 digits (got {len(digits)})"

    if len(set(digits)) == 1:
        return False, None, "EIN cannot be all same digit"

    # IRS prefixes run 01-99
    if digits[:2] == "00":
        return False, None, "EIN prefix cannot be 00"

    return True, f"{digits[:2]}-{digits[2:]}", None
