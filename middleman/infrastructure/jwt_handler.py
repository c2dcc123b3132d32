"""JWT handler resolving the calling address."""
import logging
from datetime import datetime, timedelta, timezone
from typing import Dict

import jwt

from middleman.config import settings
from middleman.domain.exceptions import InvalidTokenException, TokenExpiredException

logger = logging.getLogger(__name__)


class JWTHandler:
    """JWT handler for creating and validating tokens.

    The `sub` claim carries the caller's ledger address.
    """

    def __init__(
        self,
        secret: str = settings.jwt_secret,
        algorithm: str = settings.jwt_algorithm,
    ):
        self.secret = secret
        self.algorithm = algorithm

    def create_access_token(
        self,
        address: str,
        expires_in_minutes: int = 15,
    ) -> str:
        """Create access token."""
        now = datetime.now(timezone.utc)
        payload = {
            "sub": address,
            "iat": now,
            "exp": now + timedelta(minutes=expires_in_minutes),
            "type": "access",
        }

        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def validate_token(self, token: str) -> Dict:
        """Validate and decode token."""
        try:
            return jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError:
            logger.warning("Token expired")
            raise TokenExpiredException()
        except jwt.InvalidTokenError as e:
            logger.warning(f"Invalid token: {e}")
            raise InvalidTokenException(f"Invalid token: {e}")

    def validate_access_token(self, token: str) -> Dict:
        """Validate access token specifically."""
        payload = self.validate_token(token)
        if payload.get("type") != "access":
            raise InvalidTokenException("Token is not an access token")
        if not payload.get("sub"):
            raise InvalidTokenException("Token has no subject")
        return payload

    def get_address_from_token(self, token: str) -> str:
        """Extract caller address from token."""
        payload = self.validate_access_token(token)
        return payload["sub"]
