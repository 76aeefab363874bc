"""Core webhook verification and dispatch for paygate."""

__version__ = "0.1.0"
