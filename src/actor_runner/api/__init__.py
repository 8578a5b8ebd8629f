"""Versioned HTTP API contracts."""
