"""Data models for Stratus."""
