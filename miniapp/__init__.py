"""M7 Mini App backend: dating, listings and moderation services."""

__version__ = "1.0.0"
