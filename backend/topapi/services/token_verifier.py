"""
Topapi Backend: Token Verifier
================================

What:  Resolves an `Authorization: Bearer <token>` header to a Principal.
Why:   The identity provider is the only source of truth for tokens; the
       API never decodes or trusts a token locally.
How:   Extract the token, ask the provider who it belongs to, build an
       immutable Principal. Two modes:
           verify()           mandatory: raises AuthenticationError (401)
           verify_optional()  optional:  returns None on any problem
When:  First stage of every route that reads the principal. No caching:
       every request re-verifies.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from topapi.exceptions import AuthenticationError, IdentityRejectedError, TopapiError
from topapi.services.authorization import ROLE_STAFF, normalize_role
from topapi.services.identity_base import IdentityProvider

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Principal:
    """
    The authenticated actor for one request. Never persisted.

    Attributes:
        id:            Account id issued by the identity provider
        role:          Canonical lowercase role (admin | staff)
        email:         Account email, when the provider returned one
        claims:        Raw user object from the provider
        access_token:  The verified bearer token (used for logout and
                       self-service password changes)
    """

    id: str
    role: str = ROLE_STAFF
    email: Optional[str] = None
    claims: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)
    access_token: Optional[str] = field(default=None, compare=False, repr=False)

    @classmethod
    def from_identity(cls, user: Dict[str, Any], access_token: Optional[str] = None) -> "Principal":
        metadata = user.get("user_metadata") or {}
        return cls(
            id=str(user["id"]),
            role=normalize_role(metadata.get("role")) or ROLE_STAFF,
            email=user.get("email"),
            claims=user,
            access_token=access_token,
        )


def extract_bearer_token(header: Optional[str]) -> Optional[str]:
    """Token from a `Bearer <token>` header; None for anything else."""
    if not header or not header.startswith("Bearer "):
        return None
    token = header[len("Bearer "):].strip()
    return token or None


class TokenVerifier:
    """Verifies bearer tokens against the identity provider."""

    def __init__(self, identity: IdentityProvider):
        self._identity = identity

    async def verify(self, authorization: Optional[str]) -> Principal:
        """
        Mandatory mode.

        Raises:
            AuthenticationError("No token provided"):        header missing or not Bearer
            AuthenticationError("Invalid or expired token"): provider rejected the
                                                             token or returned no user
            AuthenticationError("Authentication failed"):    provider call failed
        """
        token = extract_bearer_token(authorization)
        if token is None:
            raise AuthenticationError("No token provided")

        try:
            user = await self._identity.get_user(token)
        except IdentityRejectedError as e:
            logger.info("Token rejected by identity provider: %s", e.message)
            raise AuthenticationError("Invalid or expired token") from e
        except TopapiError as e:
            logger.error("Token verification failed: %s | Context: %s", e.message, e.context)
            raise AuthenticationError("Authentication failed") from e

        if not user:
            raise AuthenticationError("Invalid or expired token")

        return Principal.from_identity(user, token)

    async def verify_optional(self, authorization: Optional[str]) -> Optional[Principal]:
        """Optional mode: the request proceeds unauthenticated on any failure."""
        if extract_bearer_token(authorization) is None:
            return None
        try:
            return await self.verify(authorization)
        except AuthenticationError as e:
            logger.debug("Optional authentication skipped: %s", e.message)
            return None
