"""
JWT Token Management Service

Issues and validates stateless HS256 access tokens. Validation never touches
the credential store; a token is accepted up to, but excluding, its expiry
instant.
"""
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional
from uuid import UUID

import structlog
from jose import JWTError, jwt
from pydantic import BaseModel, ValidationError as PydanticValidationError

from app.core.config import get_settings
from app.core.exceptions import (
    BadSignatureError,
    ExpiredTokenError,
    MalformedTokenError,
)
from app.services.auth.authorization.rbac import UserRole

logger = structlog.get_logger(__name__)
settings = get_settings()

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TokenClaims(BaseModel):
    """JWT token payload structure."""
    sub: UUID  # User ID
    email: str
    role: UserRole
    unit: Optional[str] = None
    ver: int = 0
    type: str = "access"
    iat: float
    exp: float
    iss: Optional[str] = None

    @property
    def user_id(self) -> UUID:
        return self.sub


class IssuedToken(BaseModel):
    """Signed access token returned to clients."""
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    expires_at: datetime


class TokenService:
    """Service for JWT token operations."""

    def __init__(
        self,
        clock: Optional[Clock] = None,
        secret_key: Optional[str] = None,
    ):
        self.algorithm = settings.JWT_ALGORITHM
        self.secret_key = secret_key or settings.SECRET_KEY
        self.access_token_expire_minutes = settings.ACCESS_TOKEN_EXPIRE_MINUTES
        self.issuer = settings.JWT_ISSUER
        self.clock = clock or utc_now

    def issue(self, principal: Any, ttl: Optional[timedelta] = None) -> IssuedToken:
        """
        Issue a signed access token for a principal.

        Args:
            principal: Object exposing id, email, role, unit and token_version
            ttl: Lifetime of the token, defaults to the configured access TTL

        Returns:
            IssuedToken with the compact token and its expiry
        """
        ttl = ttl if ttl is not None else timedelta(minutes=self.access_token_expire_minutes)
        now = self.clock()
        expire = now + ttl

        claims = {
            "sub": str(principal.id),
            "email": principal.email,
            "role": UserRole(principal.role).value,
            "unit": principal.unit,
            "ver": getattr(principal, "token_version", 0) or 0,
            "type": "access",
        }
        token = self._create_token(claims, issued_at=now, expires_at=expire)

        logger.info(
            "access_token_issued",
            user_id=str(principal.id),
            role=claims["role"],
            ttl_seconds=int(ttl.total_seconds()),
        )

        return IssuedToken(
            access_token=token,
            expires_in=int(ttl.total_seconds()),
            expires_at=expire,
        )

    def validate(self, token: str) -> TokenClaims:
        """
        Verify a token and return its claims.

        Raises:
            MalformedTokenError: Token cannot be decoded or claims do not parse
            BadSignatureError: Signature does not verify
            ExpiredTokenError: Current time is at or past the expiry instant
        """
        try:
            jwt.get_unverified_claims(token)
        except JWTError as e:
            logger.info("token_rejected", reason="malformed", error=str(e))
            raise MalformedTokenError() from e

        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                options={
                    # Expiry is checked below against the injected clock
                    "verify_exp": False,
                    "verify_nbf": False,
                    "verify_iat": False,
                    "verify_aud": False,
                    "verify_iss": False,
                },
            )
        except JWTError as e:
            logger.info("token_rejected", reason="bad_signature", error=str(e))
            raise BadSignatureError() from e

        try:
            claims = TokenClaims(**payload)
        except (PydanticValidationError, TypeError) as e:
            logger.info("token_rejected", reason="invalid_claims")
            raise MalformedTokenError("Token claims are invalid") from e

        if claims.type != "access" or (claims.iss is not None and claims.iss != self.issuer):
            logger.info("token_rejected", reason="wrong_type_or_issuer")
            raise MalformedTokenError("Token claims are invalid")

        if self.clock().timestamp() >= claims.exp:
            logger.info("token_rejected", reason="expired", user_id=str(claims.sub))
            raise ExpiredTokenError()

        return claims

    def _create_token(
        self,
        data: Dict[str, Any],
        issued_at: datetime,
        expires_at: datetime,
    ) -> str:
        """Create a JWT token with given data and expiration."""
        to_encode = data.copy()
        to_encode.update({
            # NumericDate keeps the sub-second part so exp is exactly iat + ttl
            "iat": issued_at.timestamp(),
            "exp": expires_at.timestamp(),
            "iss": self.issuer,
        })

        return jwt.encode(
            to_encode,
            self.secret_key,
            algorithm=self.algorithm,
        )
