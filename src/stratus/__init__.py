"""Stratus - lazy-loading cloud inventory explorer."""

__version__ = "0.1.0"
