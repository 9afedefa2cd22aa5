"""Template-driven media organizer."""

__version__ = "0.1.0"
