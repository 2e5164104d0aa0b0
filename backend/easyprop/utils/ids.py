import random
import string
import time

_ALPHABET = string.digits + string.ascii_lowercase


def generate_id(prefix: str) -> str:
    """Return ``<prefix>_<epoch millis>_<9 base36 chars>``."""
    millis = int(time.time() * 1000)
    suffix = "".join(random.choices(_ALPHABET, k=9))
    return f"{prefix}_{millis}_{suffix}"


def current_millis() -> int:
    return int(time.time() * 1000)
