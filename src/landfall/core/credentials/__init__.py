"""
Credential negotiation with git credential helpers.

Example:
    >>> from landfall.core.credentials import GitCredential
    >>> GitCredential().fill(Path.cwd(), "https://example.com/repo.git")
    UserPassword(username='jane', password=(hidden))
"""

from landfall.core.credentials.models import UserPassword
from landfall.core.credentials.service import GitCredential, build_request, parse_response

__all__ = ["GitCredential", "UserPassword", "build_request", "parse_response"]
