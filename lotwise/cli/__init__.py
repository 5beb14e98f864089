"""Command line interface for Lotwise."""
