"""
authvault web package: Flask app, auth and authenticator APIs.
"""

from .app import create_app, get_store

__all__ = ["create_app", "get_store"]
