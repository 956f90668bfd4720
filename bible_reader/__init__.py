"""Bible reading coach: speech-driven verse tracking and reading progress."""

__version__ = "0.1.0"
