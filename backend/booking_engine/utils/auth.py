from datetime import datetime, timedelta, timezone
from typing import Sequence

import jwt
from jwt import InvalidTokenError

STAFF_TOKEN_TTL = timedelta(hours=8)


def create_staff_token(
    *,
    user_id: int,
    secret: str,
    algorithm: str = "HS256",
    expires_delta: timedelta | None = None,
) -> str:
    """Sign a back-office token whose `sub` is the staff user id."""
    now = datetime.now(timezone.utc)
    payload = {"sub": str(user_id), "iat": now, "exp": now + (expires_delta or STAFF_TOKEN_TTL)}
    return jwt.encode(payload, secret, algorithm=algorithm)


def decode_staff_token(token: str, *, secret: str, algorithms: Sequence[str]) -> int:
    try:
        claims = jwt.decode(token, secret, algorithms=list(algorithms), options={"require": ["exp", "sub"]})
    except InvalidTokenError as exc:
        raise ValueError("invalid token") from exc
    try:
        return int(claims["sub"])
    except (TypeError, ValueError) as exc:
        raise ValueError("token sub is not an integer") from exc


def bearer_token(authorization: str | None) -> str | None:
    """Extract the credential from an `Authorization: Bearer ...` header."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()
