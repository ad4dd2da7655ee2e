"""
Authentication for the FastAPI API.

Issues HS256-signed JWT bearer tokens for the single built-in account and
optionally checks them on the book routes.
"""

import secrets
import time
import uuid
from typing import Any, Dict, Optional

import structlog
from authlib.jose import JoseError, JsonWebToken
from authlib.jose.errors import DecodeError
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from bookapi.config import APIConfig, config

logger = structlog.get_logger(__name__)

# Demonstration account; there is no user store
ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "password"

# Security scheme
security = HTTPBearer(auto_error=False)


def check_credentials(username: str, password: str) -> bool:
    """
    Check a username/password pair against the built-in account.

    Comparison is exact and case-sensitive.
    """
    username_ok = secrets.compare_digest(username.encode(), ADMIN_USERNAME.encode())
    password_ok = secrets.compare_digest(password.encode(), ADMIN_PASSWORD.encode())
    return username_ok and password_ok


class JwtTokenIssuer:
    """Generates and verifies signed bearer tokens."""

    def __init__(
        self,
        secret_key: str,
        issuer: str,
        audience: str,
        expiry_minutes: int,
        algorithm: str = "HS256"
    ):
        self.secret_key = secret_key
        self.issuer = issuer
        self.audience = audience
        self.expiry_minutes = expiry_minutes
        self.algorithm = algorithm
        # Only the configured algorithm is accepted when decoding
        self.jwt = JsonWebToken([algorithm])

    @classmethod
    def from_config(cls, settings: APIConfig) -> "JwtTokenIssuer":
        return cls(
            secret_key=settings.jwt_secret_key,
            issuer=settings.jwt_issuer,
            audience=settings.jwt_audience,
            expiry_minutes=settings.jwt_expiry_minutes,
            algorithm=settings.jwt_algorithm
        )

    def generate_token(self, username: str) -> str:
        """
        Generate a signed token for a user.

        Args:
            username: Goes into both the sub and name claims

        Returns:
            Compact serialized JWT
        """
        now = int(time.time())
        payload = {
            "iss": self.issuer,
            "aud": self.audience,
            "sub": username,
            "name": username,
            "jti": str(uuid.uuid4()),
            "iat": now,
            "exp": now + self.expiry_minutes * 60,
        }
        header = {"alg": self.algorithm, "typ": "JWT"}

        token = self.jwt.encode(header, payload, self.secret_key)
        # authlib returns bytes
        return token.decode() if isinstance(token, bytes) else token

    def decode_token(self, token: str) -> Dict[str, Any]:
        """
        Verify signature and lifetime of a token.

        Only tokens signed with the configured algorithm are accepted.
        Issuer and audience are not checked.

        Raises:
            JoseError: If the token is malformed, tampered with, expired or
                signed with another algorithm
        """
        try:
            claims = self.jwt.decode(token, self.secret_key)
        except ValueError as e:
            # Key import failures surface as ValueError rather than JoseError
            raise DecodeError(str(e)) from e
        claims.validate()
        return dict(claims)


def get_token_issuer() -> JwtTokenIssuer:
    """Dependency providing the configured token issuer."""
    return JwtTokenIssuer.from_config(config)


async def require_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    issuer: JwtTokenIssuer = Depends(get_token_issuer)
) -> Optional[Dict[str, Any]]:
    """
    Check the bearer token when book routes are protected.

    Returns:
        Token claims, or None when protection is disabled

    Raises:
        HTTPException: If protection is enabled and the token is missing or invalid
    """
    if not config.protect_book_routes:
        return None

    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing bearer token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        return issuer.decode_token(credentials.credentials)
    except (JoseError, ValueError) as e:
        logger.warning("Invalid bearer token", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
