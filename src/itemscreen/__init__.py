"""itemscreen — load, retry, fall back, and project items for a reusable list screen."""

__version__ = "0.3.0"
