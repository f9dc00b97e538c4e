"""
Short code generation strategies.
Uses Strategy Pattern so the store can stay agnostic of how codes are drawn.
"""

import secrets
from abc import ABC, abstractmethod


class ShortCodeStrategy(ABC):
    """Abstract base class for short code generation strategies"""

    @abstractmethod
    def generate(self) -> str:
        """
        Generate a candidate short code.

        Uniqueness is not checked here: the store rejects a duplicate insert
        and the caller draws again.
        """
        pass


class RandomShortCodeStrategy(ShortCodeStrategy):
    """
    Random codes from an alphabet without look-alike characters.

    No 0/o, 1/l/i, u/v, q, etc., so codes survive being read aloud or
    typed from a printout. Uses the OS CSPRNG via `secrets`.
    """

    CHARSET = "abcdefghkprstxyz2345678"

    def __init__(self, length: int = 6, charset: str = CHARSET):
        if length < 1:
            raise ValueError("length must be positive")
        self.length = length
        self.characters = charset

    def generate(self) -> str:
        return ''.join(secrets.choice(self.characters) for _ in range(self.length))
