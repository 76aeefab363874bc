"""Utility helpers shared across paygate packages."""
