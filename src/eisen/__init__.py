"""eisen - Eisenhower matrix task prioritisation and daily habit tracking."""

__version__ = "0.1.0"
