"""Caller identity from HS256 bearer tokens issued by the auth collaborator."""

from typing import Optional

from jose import JWTError, jwt

from heritage.errors import Unauthorized
from heritage.utils.logger import get_logger

logger = get_logger(__name__)


class TokenVerifier:
    """
    Verifies bearer tokens and returns the caller's user id (`sub` claim).

    Session issuance lives with the auth collaborator; this only checks the
    signature, expiry and audience of what it issued.
    """

    def __init__(
        self,
        secret: Optional[str],
        algorithm: str = "HS256",
        audience: Optional[str] = None
    ) -> None:
        self._secret = secret
        self._algorithm = algorithm
        self._audience = audience

    def user_id_from_header(self, authorization: Optional[str]) -> str:
        """
        Extract and verify the token in an `Authorization: Bearer ...` header.

        Raises:
            Unauthorized: Missing header, bad scheme, invalid token or no `sub`
        """
        if not authorization:
            raise Unauthorized("Missing authorization header")

        scheme, _, token = authorization.partition(" ")
        if scheme.lower() != "bearer" or not token.strip():
            raise Unauthorized("Authorization header must be a bearer token")

        return self.user_id_from_token(token.strip())

    def user_id_from_token(self, token: str) -> str:
        if not self._secret:
            logger.error("Token verification requested but AUTH_JWT_SECRET is not set")
            raise Unauthorized("Authentication is not configured")

        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                audience=self._audience,
                options={"verify_aud": self._audience is not None},
            )
        except JWTError as e:
            logger.info("Rejected bearer token", error=str(e))
            raise Unauthorized("Unauthorized") from e

        user_id = claims.get("sub")
        if not user_id or not isinstance(user_id, str):
            raise Unauthorized("Token has no subject")
        return user_id
