"""Command-line interface for dashquery."""
