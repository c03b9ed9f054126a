"""Caller identity from externally issued bearer tokens."""

import logging
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Optional

from fastapi import Depends, Request
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from blocktrust_api.db.session import get_db
from blocktrust_api.errors import Unauthenticated
from blocktrust_api.models import UserRole
from blocktrust_api.settings import get_settings
from blocktrust_api.utils.clock import utcnow

logger = logging.getLogger(__name__)


@dataclass
class Actor:
    """Authenticated caller and the roles granted to them."""

    id: str
    roles: set[str] = field(default_factory=set)


def decode_token(token: str) -> str:
    """Verify a bearer token and return its subject (the actor id)."""
    settings = get_settings()
    options = {"verify_aud": settings.jwt_audience is not None}
    try:
        claims = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
            options=options,
        )
    except JWTError as e:
        raise Unauthenticated(f"Invalid token: {e}") from e

    subject = claims.get("sub")
    if not subject:
        raise Unauthenticated("Token has no subject")
    return subject


def issue_token(actor_id: str, expires_in: Optional[timedelta] = None) -> str:
    """Mint a token for an actor (development and tests only)."""
    settings = get_settings()
    expires_in = expires_in or timedelta(hours=settings.jwt_expiration_hours)
    claims = {"sub": actor_id, "exp": utcnow() + expires_in}
    if settings.jwt_audience:
        claims["aud"] = settings.jwt_audience
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def extract_bearer(authorization: Optional[str]) -> str:
    """Pull the token out of an ``Authorization: Bearer ...`` header."""
    if not authorization:
        raise Unauthenticated("No authorization header")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise Unauthenticated("Authorization header must be 'Bearer <token>'")
    return token.strip()


def load_roles(db: Session, actor_id: str) -> set[str]:
    """Role grants held by an actor."""
    rows = db.query(UserRole.role).filter(UserRole.user_id == actor_id).all()
    return {row.role for row in rows}


async def get_current_actor(request: Request, db: Session = Depends(get_db)) -> Actor:
    """Resolve the caller set by the auth middleware and load their roles."""
    actor_id = getattr(request.state, "actor_id", None)
    if not actor_id:
        actor_id = decode_token(extract_bearer(request.headers.get("authorization")))
    return Actor(id=actor_id, roles=load_roles(db, actor_id))
