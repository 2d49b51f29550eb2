"""Utility helpers for ionflake."""
