# backend/utils/barcode.py
import logging
import random
from typing import Callable, Optional

logger = logging.getLogger(__name__)

# GS1 prefix for Morocco
COUNTRY_PREFIX = "611"
MAX_ATTEMPTS = 10


def ean13_check_digit(first_twelve: str) -> int:
    total = sum(int(d) * (1 if i % 2 == 0 else 3) for i, d in enumerate(first_twelve))
    return (10 - total % 10) % 10


def is_valid_ean13(code: str) -> bool:
    if len(code) != 13 or not code.isdigit():
        return False
    return ean13_check_digit(code[:12]) == int(code[12])


def generate_barcode(rng: Optional[random.Random] = None) -> str:
    rng = rng or random
    body = COUNTRY_PREFIX + f"{rng.randrange(10**9):09d}"
    return body + str(ean13_check_digit(body))


def generate_unique_barcode(exists: Callable[[str], bool], rng: Optional[random.Random] = None) -> str:
    """Draw random EAN-13 codes until one is not taken, at most MAX_ATTEMPTS times.

    When every attempt collides the last candidate is returned anyway.
    """
    candidate = ""
    for _ in range(MAX_ATTEMPTS):
        candidate = generate_barcode(rng)
        if not exists(candidate):
            return candidate
    logger.warning("No free barcode found after %d attempts, reusing %s", MAX_ATTEMPTS, candidate)
    return candidate
