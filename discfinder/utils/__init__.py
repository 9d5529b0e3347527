"""Shared helpers: logging setup, permission decorators, importer settings."""
