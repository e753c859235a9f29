"""Admin Auth — credential check and signed bearer tokens for staff-only routes.

Invariants:
    - Credentials and signing secret are given once at construction (from Settings)
    - Credential comparisons use hmac.compare_digest (constant time)
    - Tokens are HS256 JWTs carrying {sub, iat, exp}; both sub and exp are required
    - Any malformed, forged or expired token raises AuthError, never a PyJWT error

Design Decisions:
    - The clock only stamps issued tokens; expiry is checked by PyJWT at decode time
"""

import hmac
import time
from collections.abc import Callable

import jwt

from campus_print.core.errors import AuthError

ALGORITHM = "HS256"


class AdminAuth:
    """Issues and verifies admin bearer tokens."""

    def __init__(
        self,
        username: str,
        password: str,
        secret: str,
        ttl_seconds: int = 86_400,
        clock: Callable[[], float] = time.time,
    ):
        self._username = username
        self._password = password
        self._secret = secret
        self._ttl_seconds = ttl_seconds
        self._clock = clock

    def login(self, username: str, password: str) -> str:
        """Return a signed token for valid admin credentials."""
        user_ok = hmac.compare_digest(username.encode(), self._username.encode())
        pass_ok = hmac.compare_digest(password.encode(), self._password.encode())
        if not (user_ok and pass_ok):
            raise AuthError("Invalid credentials")
        issued_at = int(self._clock())
        return jwt.encode(
            {
                "sub": self._username,
                "iat": issued_at,
                "exp": issued_at + self._ttl_seconds,
            },
            self._secret,
            algorithm=ALGORITHM,
        )

    def verify(self, token: str) -> str:
        """Return the token subject, or raise AuthError."""
        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[ALGORITHM],
                options={"require": ["sub", "exp"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise AuthError("Admin token expired") from e
        except jwt.PyJWTError as e:
            raise AuthError("Invalid admin token") from e
        return claims["sub"]
