"""Training program generation and validation pipeline."""

__version__ = "1.0.0"
