# Overview: Service-layer operations for auth; encapsulates business logic and database work.

"""
Authentication Service

Every order and lead is attributed to a user, so accounts are individual
and passwords are hashed with bcrypt (cost factor 12).

Session tokens are issued separately (see session_service.py).
"""

import re

import bcrypt
from sqlalchemy.exc import IntegrityError

from ..errors import ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import User
from ..permissions import Role
from pavan.time_utils import utcnow

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class PasswordValidationError(ValidationError):
    """Raised when password doesn't meet strength requirements."""
    pass


def validate_password_strength(password: str) -> None:
    """
    Requirements:
    - Minimum 8 characters
    - At least one letter
    - At least one digit

    Raises PasswordValidationError if requirements not met.
    """
    if not isinstance(password, str) or len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if not re.search(r'[A-Za-z]', password):
        raise PasswordValidationError("Password must contain at least one letter")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")


def normalize_email(email) -> str:
    if not isinstance(email, str) or not _EMAIL_RE.match(email.strip()):
        raise ValidationError("A valid email is required")
    return email.strip().lower()


def hash_password(password: str) -> str:
    """Hash password using bcrypt with cost factor 12 (strength is validated first)."""
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=12)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    Returns True if password matches hash, False otherwise.
    bcrypt.checkpw() is timing-safe.
    """
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        # Malformed hash (e.g. a placeholder value)
        return False


def create_user(
    email: str,
    password: str,
    name: str,
    role=Role.SALES,
    phone: str | None = None,
    is_active: bool = True,
) -> User:
    """
    Create new user with bcrypt password hashing.

    Raises:
        ValidationError: bad email, name or role
        PasswordValidationError: password doesn't meet requirements
        ConflictError: email already registered
    """
    email = normalize_email(email)
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("name is required")
    name = name.strip()
    try:
        role = Role.parse(role or Role.SALES)
    except ValueError as e:
        raise ValidationError(str(e))

    if db.session.query(User).filter_by(email=email).first():
        raise ConflictError("Email already registered")

    user = User(
        email=email,
        password_hash=hash_password(password),
        name=name,
        phone=(phone or None),
        role=role,
        is_active=is_active,
    )

    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("Email already registered")
    return user


def authenticate(email: str, password: str) -> User | None:
    """
    Authenticate user with email and password.

    Returns User if credentials valid and the account is active, None otherwise.
    Updates last_login_at timestamp on successful authentication.
    """
    if not isinstance(email, str) or not email.strip():
        return None

    user = db.session.query(User).filter(
        User.email == email.strip().lower(),
        User.is_active.is_(True),
    ).first()

    if not user:
        return None

    if verify_password(password, user.password_hash):
        user.last_login_at = utcnow()
        db.session.commit()
        return user

    return None


def get_user(user_id: int) -> User:
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


def list_users(*, role=None, include_inactive: bool = True) -> list[User]:
    query = db.session.query(User)
    if role is not None:
        query = query.filter(User.role == Role.parse(role))
    if not include_inactive:
        query = query.filter(User.is_active.is_(True))
    return query.order_by(User.id.asc()).all()


def update_user(user_id: int, patch: dict, password: str | None = None) -> User:
    """Apply a validated patch; a new password is re-hashed."""
    user = get_user(user_id)

    if "email" in patch:
        email = normalize_email(patch.pop("email"))
        clash = db.session.query(User).filter(User.email == email, User.id != user_id).first()
        if clash:
            raise ConflictError("Email already registered")
        user.email = email

    for key, value in patch.items():
        setattr(user, key, value)

    if password:
        user.password_hash = hash_password(password)

    db.session.commit()
    return user


def deactivate_user(user_id: int) -> User:
    """Users are never hard-deleted; orders and leads keep pointing at them."""
    user = get_user(user_id)
    user.is_active = False
    db.session.commit()
    return user
