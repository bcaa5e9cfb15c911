"""Textual widgets for Stratus."""
