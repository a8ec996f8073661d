"""
FastAPI REST API for the Little Library backend.

This module provides a REST API for:
- Managing books in a user's personal library
- Searching the OpenLibrary catalog
- Firebase ID token authentication
"""
