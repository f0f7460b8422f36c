"""Command-line interface for eet."""
