"""OAuth2 credential management for Google accounts."""

from contacts_cli.auth.google_auth import SCOPES, AuthenticationError, GoogleAuth

__all__ = ["SCOPES", "AuthenticationError", "GoogleAuth"]
