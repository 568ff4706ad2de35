"""
Basic authorization for the HTTP API.

Credentials are an explicit ``username -> password`` mapping handed to the
authorizer at startup.
"""

import base64
import binascii
import hmac
from dataclasses import dataclass
from typing import Mapping, Optional

from .exceptions import AuthorizationError

ALLOW = "Allow"
DENY = "Deny"


@dataclass(frozen=True)
class AuthDecision:
    """Outcome of checking one Authorization header."""
    allowed: bool
    principal: Optional[str]
    reason: str

    @property
    def effect(self) -> str:
        return ALLOW if self.allowed else DENY


class BasicAuthorizer:
    """Checks ``Basic <base64(username:password)>`` headers against known credentials."""

    SCHEME = "Basic"

    def __init__(self, credentials: Mapping[str, str]):
        self._credentials = dict(credentials)

    def authorize(self, header: Optional[str]) -> AuthDecision:
        """
        Decide whether a header grants access.

        Raises:
            AuthorizationError: If no header was supplied at all
        """
        if not header or not header.strip():
            raise AuthorizationError("Unauthorized")

        parts = header.strip().split(" ", 1)
        if len(parts) != 2 or parts[0].lower() != self.SCHEME.lower() or not parts[1].strip():
            return AuthDecision(False, None, "Malformed authorization header")

        try:
            decoded = base64.b64decode(parts[1].strip(), validate=True).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError):
            return AuthDecision(False, None, "Authorization token is not valid base64")

        username, sep, password = decoded.partition(":")
        if not sep or not username:
            return AuthDecision(False, None, "Authorization token must be username:password")

        expected = self._credentials.get(username)
        if expected is None:
            return AuthDecision(False, username, f"Unknown user {username}")

        if not hmac.compare_digest(expected.encode("utf-8"), password.encode("utf-8")):
            return AuthDecision(False, username, f"Invalid password for user {username}")

        return AuthDecision(True, username, "Credentials accepted")


def generate_policy(principal_id: str, effect: str, resource: str, context: Optional[dict] = None) -> dict:
    """Build an API Gateway authorizer response."""
    policy = {
        "principalId": principal_id,
        "policyDocument": {
            "Version": "2012-10-17",
            "Statement": [
                {
                    "Action": "execute-api:Invoke",
                    "Effect": effect,
                    "Resource": resource,
                }
            ],
        },
    }
    if context:
        policy["context"] = context
    return policy
