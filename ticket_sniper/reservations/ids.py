import secrets
import string
import time
from typing import Callable, Optional

ALPHABET = string.digits + string.ascii_lowercase
SUFFIX_LENGTH = 9


class IdentityGenerator:
    """Reservation and seat ids: a millisecond timestamp plus a random base36 suffix."""

    def __init__(self, clock: Optional[Callable[[], float]] = None, suffix_length: int = SUFFIX_LENGTH):
        if suffix_length < SUFFIX_LENGTH:
            raise ValueError(f"suffix_length must be at least {SUFFIX_LENGTH}")
        self.clock = clock or time.time
        self.suffix_length = suffix_length

    def _timestamp(self) -> int:
        return int(self.clock() * 1000)

    def _suffix(self) -> str:
        return ''.join(secrets.choice(ALPHABET) for _ in range(self.suffix_length))

    def reservation_id(self) -> str:
        return f"RES-{self._timestamp()}-{self._suffix()}"

    def seat_id(self, show_id: str) -> str:
        return f"SEAT-{show_id}-{self._timestamp()}-{self._suffix()}"
