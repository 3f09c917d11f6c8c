"""Multi-agent maze mice simulation."""

__version__ = "0.1.0"
