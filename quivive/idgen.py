"""Identifier generation for stored entries."""

import random
from typing import Optional


# Digits and letters minus the easily confused 0, 1, l, o, I and O.
DEFAULT_ID_LENGTH = 9
DEFAULT_ID_CHARSET = (
    "23456789"
    "abcdefghjkimnpqrstuvwxyz"
    "ABCDEFGHJKLMNPQRSTUVWXYZ"
)


class IdGenerator:
    """Generate random identifiers from a fixed alphabet.

    Identifiers are not checked against the store. Two generated ids may
    collide, in which case the later entry replaces the earlier one.
    Callers that need guaranteed uniqueness supply their own id.
    """

    def __init__(
        self,
        id_length: int = DEFAULT_ID_LENGTH,
        id_charset: str = DEFAULT_ID_CHARSET,
    ):
        """Initialize identifier generator.

        Args:
            id_length: Number of characters per identifier
            id_charset: Alphabet to draw characters from (repeats allowed)

        Raises:
            ValueError: If the alphabet is empty or the length is not positive
        """
        if not id_charset:
            raise ValueError("Identifier alphabet must not be empty")
        if id_length < 1:
            raise ValueError("Identifier length must be at least 1")

        self.id_length = id_length
        self.id_charset = id_charset
        self._random = random.SystemRandom()

    def generate(self, length: Optional[int] = None) -> str:
        """Generate a random identifier.

        Args:
            length: Length of the identifier (uses configured length if not specified)

        Returns:
            Random identifier
        """
        length = length or self.id_length
        return ''.join(self._random.choices(self.id_charset, k=length))
