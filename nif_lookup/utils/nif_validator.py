"""Portuguese tax identifier (NIF) validation.

A NIF has nine digits. The leading digit(s) encode the kind of taxpayer and
must belong to a fixed whitelist; the last digit is a mod-11 check digit over
the first eight, weighted 9 down to 2.
"""

from __future__ import annotations

import re

NIF_LENGTH = 9

VALID_PREFIXES: tuple[str, ...] = (
    "1", "2", "3", "5", "6", "8",
    "45", "70", "71", "72", "77", "79", "90", "91", "98",
)

_WEIGHTS = (9, 8, 7, 6, 5, 4, 3, 2)
_NIF_PATTERN = re.compile(rf"[0-9]{{{NIF_LENGTH}}}")
_BODY_PATTERN = re.compile(r"[0-9]{8}")


def compute_check_digit(first_eight: str) -> int:
    """Compute the check digit for the first eight digits of a NIF.

    Args:
        first_eight: String of exactly eight decimal digits.

    Returns:
        The expected ninth digit (0-9).

    Raises:
        ValueError: If the input is not eight digits.
    """
    if not _BODY_PATTERN.fullmatch(first_eight):
        raise ValueError("check digit needs exactly eight digits")

    total = sum(int(digit) * weight for digit, weight in zip(first_eight, _WEIGHTS))
    remainder = total % 11
    return 0 if remainder in (0, 1) else 11 - remainder


def has_valid_prefix(nif: str) -> bool:
    return nif.startswith(VALID_PREFIXES)


def is_valid_nif(nif: str) -> bool:
    """Return True when ``nif`` is a well-formed NIF with a matching check digit."""
    if not isinstance(nif, str) or not _NIF_PATTERN.fullmatch(nif):
        return False
    if not has_valid_prefix(nif):
        return False
    return int(nif[-1]) == compute_check_digit(nif[:-1])
