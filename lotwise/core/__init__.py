"""Core accounting and analytics engine."""
