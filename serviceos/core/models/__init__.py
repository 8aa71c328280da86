"""Core models and schemas for the API contract."""
