"""Command-line interface of ptaflow."""
