"""Task-source, session and timeout helpers for the Ralph loop."""

__version__ = "0.1.0"

__all__ = ["__version__"]
