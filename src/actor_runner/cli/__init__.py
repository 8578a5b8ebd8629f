"""Command-line support routines."""
