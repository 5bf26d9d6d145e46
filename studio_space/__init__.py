"""Studio Space: moodboard backend API."""

__version__ = "0.1.0"
