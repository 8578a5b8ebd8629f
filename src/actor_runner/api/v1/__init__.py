"""API v1: error mapping, request/response schemas and handlers."""
