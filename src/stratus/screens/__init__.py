"""Textual screens for Stratus."""
