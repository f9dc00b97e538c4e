"""
Tests for short code generation strategies.
"""
import pytest

from golinks_app.schemas.link import is_valid_code
from golinks_app.services.short_code_strategies import RandomShortCodeStrategy


class TestRandomStrategy:
    """Test random code strategy"""

    def test_generates_correct_length(self):
        """Test that codes have the configured length"""
        strategy = RandomShortCodeStrategy(length=6)

        assert len(strategy.generate()) == 6
        assert len(RandomShortCodeStrategy(length=10).generate()) == 10

    def test_uses_unambiguous_charset(self):
        """No look-alike characters ever appear"""
        strategy = RandomShortCodeStrategy()

        for _ in range(200):
            code = strategy.generate()
            assert set(code) <= set(RandomShortCodeStrategy.CHARSET)
            assert not set(code) & set("01ilouvq")

    def test_codes_are_valid_short_codes(self):
        strategy = RandomShortCodeStrategy()

        assert all(is_valid_code(strategy.generate()) for _ in range(50))

    def test_codes_vary(self):
        strategy = RandomShortCodeStrategy()

        codes = {strategy.generate() for _ in range(100)}

        assert len(codes) > 90

    def test_rejects_zero_length(self):
        with pytest.raises(ValueError):
            RandomShortCodeStrategy(length=0)
