"""Utility helpers (logging configuration)."""
