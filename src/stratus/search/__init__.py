"""Cross-account resource search."""
