"""
SignedSearch Errors
===================

Errors raised by the wrapper itself. Transport, authorization and query
errors raised by the wrapped search client are never caught or rewrapped;
they reach the caller exactly as the client library raised them.
"""

from typing import Optional


class SignedSearchError(Exception):
    """Base exception for SignedSearch."""

    pass


class ConfigurationError(SignedSearchError):
    """Invalid or incomplete handler configuration."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class CredentialsError(SignedSearchError):
    """No AWS credentials could be resolved for request signing."""

    def __init__(self, message: str, profile: Optional[str] = None):
        super().__init__(message)
        self.profile = profile


class ClientStateError(SignedSearchError):
    """Operation not allowed once the search client has been built."""

    pass
