"""CodeOn challenge execution and verification engine."""

__version__ = "0.1.0"
