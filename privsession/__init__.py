"""privsession - keep a private-mode permission renewed."""

__version__ = "0.3.0"
