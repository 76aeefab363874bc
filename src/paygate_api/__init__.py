"""FastAPI application exposing the paygate webhook receiver."""

__version__ = "0.1.0"
