"""Shared utilities for Stratus."""
