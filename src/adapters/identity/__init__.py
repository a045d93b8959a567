"""Identity Store adapters - HTTP client implementation."""

from .http import HttpIdentityStore

__all__ = ["HttpIdentityStore"]
