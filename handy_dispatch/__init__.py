"""Forward commands embedded in chat responses to a remote motion controller."""

__version__ = "0.1.0"
