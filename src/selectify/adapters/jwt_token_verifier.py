"""Bearer token verification."""

from dataclasses import dataclass
from typing import Protocol

import jwt

from selectify.domain.errors import UnauthorizedError


class TokenVerifier(Protocol):
    """Interface for resolving a bearer token to a user id."""

    def verify(self, token: str) -> str:
        """Return the user id carried by a valid token."""


@dataclass
class JwtTokenVerifier(TokenVerifier):
    """Verifies HS256 tokens issued by the account service."""

    secret: str
    user_claim: str = "userId"

    def verify(self, token: str) -> str:
        """Decode the token and return its user claim."""
        try:
            claims = jwt.decode(token, self.secret, algorithms=["HS256"])
        except jwt.ExpiredSignatureError as exc:
            raise UnauthorizedError("Token expired") from exc
        except jwt.InvalidTokenError as exc:
            raise UnauthorizedError("Invalid token") from exc
        user_id = claims.get(self.user_claim)
        if not user_id:
            raise UnauthorizedError("Invalid token")
        return str(user_id)
