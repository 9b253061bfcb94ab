"""Tradepost marketplace messaging and moderation core."""

__version__ = "1.0.0"
