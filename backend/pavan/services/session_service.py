# Overview: Service-layer operations for session; encapsulates business logic and database work.

"""
Session Token Management Service

Tokens are HS256-signed JWTs carrying the user's id, email and role, valid
for SESSION_TOKEN_TTL_SECONDS (one hour by default). Each token's id (jti)
is recorded in session_tokens so logout can revoke it before expiry.

The role claim is informational; authorization always uses the role
stored on the user row at request time.
"""

import secrets
from dataclasses import dataclass
from datetime import timedelta

from flask import current_app
from jose import JWTError, jwt

from ..extensions import db
from ..models import SessionToken, User
from ..permissions import Role
from pavan.time_utils import utcnow


@dataclass
class SessionContext:
    """
    Identity for the current request, placed on flask.g by @require_auth.

    Lives for one request only.
    """
    user: User
    session: SessionToken

    @property
    def role(self) -> Role:
        return self.user.role

    @property
    def user_id(self) -> int:
        return self.user.id


def _secret() -> str:
    return current_app.config["JWT_SECRET"]


def _algorithm() -> str:
    return current_app.config.get("JWT_ALGORITHM", "HS256")


def _ttl() -> timedelta:
    return timedelta(seconds=int(current_app.config.get("SESSION_TOKEN_TTL_SECONDS", 3600)))


def create_session(
    user: User,
    user_agent: str | None = None,
    ip_address: str | None = None
) -> tuple[SessionToken, str]:
    """
    Issue a signed token for user.

    Returns (session_record, token). Raises ValueError for inactive users.
    """
    if not user.is_active:
        raise ValueError("User account is deactivated")

    now = utcnow()
    expires_at = now + _ttl()
    jti = secrets.token_hex(16)

    claims = {
        "sub": str(user.id),
        "email": user.email,
        "role": user.role.value,
        "jti": jti,
        "iat": now,
        "exp": expires_at,
    }
    token = jwt.encode(claims, _secret(), algorithm=_algorithm())

    session = SessionToken(
        user_id=user.id,
        jti=jti,
        issued_at=now,
        expires_at=expires_at,
        user_agent=(user_agent or None) and user_agent[:255],
        ip_address=ip_address,
    )
    db.session.add(session)
    db.session.commit()

    return session, token


def decode_token(token: str) -> dict | None:
    """Verify signature and expiry; None if the token is unusable."""
    try:
        return jwt.decode(token, _secret(), algorithms=[_algorithm()])
    except JWTError:
        return None


def validate_session(token: str) -> SessionContext | None:
    """
    Validate token and return SessionContext if valid.

    Returns None if:
    - signature invalid or token expired
    - token id unknown or revoked
    - user account is deactivated (is_active=False)
    """
    claims = decode_token(token)
    if not claims or "jti" not in claims:
        return None

    session = db.session.query(SessionToken).filter_by(jti=claims["jti"]).first()
    if not session or session.is_revoked:
        return None

    if session.expires_at < utcnow():
        return None

    user = session.user
    if not user or not user.is_active:
        return None

    if str(user.id) != str(claims.get("sub")):
        return None

    return SessionContext(user=user, session=session)


def revoke_session(token: str) -> bool:
    """Revoke the token's jti. Returns False if the token is unusable or already revoked."""
    claims = decode_token(token)
    if not claims or "jti" not in claims:
        return False

    session = db.session.query(SessionToken).filter_by(jti=claims["jti"]).first()
    if not session or session.is_revoked:
        return False

    session.revoked_at = utcnow()
    db.session.commit()
    return True


def revoke_all_user_sessions(user_id: int) -> int:
    """Revoke every live token for a user (deactivation, password change)."""
    now = utcnow()
    sessions = db.session.query(SessionToken).filter(
        SessionToken.user_id == user_id,
        SessionToken.revoked_at.is_(None),
    ).all()
    for session in sessions:
        session.revoked_at = now
    db.session.commit()
    return len(sessions)

