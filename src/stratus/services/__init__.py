"""Provider interfaces and helpers."""
