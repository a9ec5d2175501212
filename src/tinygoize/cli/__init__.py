"""CLI commands for tinygoize."""
