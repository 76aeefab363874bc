"""Operational scripts for the webhook receiver."""
