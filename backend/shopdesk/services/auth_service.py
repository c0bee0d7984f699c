# Overview: Service-layer operations for auth; encapsulates business logic and database work.

"""
Authentication Service with Multi-Tenant Support

Every action must be attributable. Uses bcrypt for password hashing and
validates password strength.

MULTI-TENANT: Users other than SUPER_ADMIN belong to exactly one shop
(shop_id). Email is unique across the platform and stored lower-case.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor from BCRYPT_ROUNDS, default 12)
- Minimum 8 characters required
- Must contain uppercase, lowercase, digit, and special char
- Access/refresh credentials are issued by token_service
- Authentication rejects inactive users and users of inactive shops
"""

import bcrypt
import re

from flask import current_app

from ..extensions import db
from ..errors import AuthenticationError, ConflictError, NotFoundError, ValidationError
from ..models import User, Shop
from ..models.auth import ROLE_STAFF, ROLE_SUPER_ADMIN, VALID_ROLES
from shopdesk.time_utils import utcnow


class PasswordValidationError(ValidationError):
    """Raised when password doesn't meet strength requirements."""
    pass


def validate_password_strength(password: str) -> None:
    """
    Validate password meets strength requirements.

    Requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character (!@#$%^&*(),.'":{}|<>)

    Raises PasswordValidationError if requirements not met.
    """
    if not isinstance(password, str):
        raise PasswordValidationError("Password is required")

    if len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if not re.search(r'[A-Z]', password):
        raise PasswordValidationError("Password must contain at least one uppercase letter")

    if not re.search(r'[a-z]', password):
        raise PasswordValidationError("Password must contain at least one lowercase letter")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")

    if not re.search(r"[!@#$%^&*(),.'\":{}|<>]", password):
        raise PasswordValidationError("Password must contain at least one special character")


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt.

    Password is validated for strength before hashing.
    """
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=current_app.config.get("BCRYPT_ROUNDS", 12))
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    bcrypt.checkpw() is timing-safe. A malformed stored hash counts as a
    mismatch.
    """
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def normalize_email(email) -> str:
    if not isinstance(email, str) or "@" not in email:
        raise ValidationError("A valid email is required")
    return email.strip().lower()


def get_user_by_email(email: str) -> User | None:
    return db.session.query(User).filter(User.email == email.strip().lower()).first()


def build_user(
    email: str,
    name: str,
    password: str,
    role: str = ROLE_STAFF,
    shop_id: int | None = None,
) -> User:
    """
    Build (but do not commit) a new user with a bcrypt password hash.

    MULTI-TENANT: Every role except SUPER_ADMIN requires shop_id.
    SUPER_ADMIN never carries a shop.

    Raises:
        ValidationError: bad role, missing name, missing/extra shop binding
        PasswordValidationError: weak password
        ConflictError: email already registered
    """
    email = normalize_email(email)
    name = (name or "").strip()
    if not name:
        raise ValidationError("name is required")
    if role not in VALID_ROLES:
        raise ValidationError(f"role must be one of: {', '.join(VALID_ROLES)}")

    if role == ROLE_SUPER_ADMIN:
        shop_id = None
    elif shop_id is None:
        raise ValidationError("shop_id is required for non-SUPER_ADMIN users")

    if get_user_by_email(email):
        raise ConflictError("Email already registered")

    user = User(
        email=email,
        name=name,
        password_hash=hash_password(password),
        role=role,
        shop_id=shop_id,
        is_active=True,
    )
    db.session.add(user)
    return user


def create_user(
    email: str,
    name: str,
    password: str,
    role: str = ROLE_STAFF,
    shop_id: int | None = None,
) -> User:
    """Create and commit a user. See build_user for validation rules."""
    if shop_id is not None:
        shop = db.session.get(Shop, shop_id)
        if not shop:
            raise NotFoundError("Shop not found")
    user = build_user(email, name, password, role=role, shop_id=shop_id)
    db.session.commit()
    return user


def register_user(email: str, name: str, password: str, shop_slug: str) -> User:
    """
    Self-registration into an existing, active shop.

    New accounts always start as STAFF; elevation is done by a shop ADMIN
    or SUPER_ADMIN.
    """
    if not shop_slug:
        raise ValidationError("shop_slug is required")

    shop = db.session.query(Shop).filter_by(slug=str(shop_slug).strip().lower()).first()
    if not shop or not shop.is_active:
        raise NotFoundError("Shop not found")

    user = build_user(email, name, password, role=ROLE_STAFF, shop_id=shop.id)
    db.session.commit()
    current_app.logger.info("Registered user %s in shop %s", user.id, shop.id)
    return user


def authenticate(email: str, password: str) -> User:
    """
    Authenticate user with email and password.

    Updates last_login_at on success.

    Raises:
        AuthenticationError: unknown email, wrong password, inactive user
            or inactive shop (one generic message for all of them)
    """
    if not email or not password:
        raise ValidationError("email and password required")

    user = get_user_by_email(str(email))
    if not user or not verify_password(password, user.password_hash):
        raise AuthenticationError("Invalid credentials")

    if not user.is_active:
        raise AuthenticationError("Invalid credentials")

    # MULTI-TENANT: Verify shop is active
    if user.shop_id is not None and (not user.shop or not user.shop.is_active):
        raise AuthenticationError("Invalid credentials")

    user.last_login_at = utcnow()
    db.session.commit()
    return user


def load_active_user(user_id: int) -> User:
    """Resolve a credential subject to an active user or raise AuthenticationError."""
    user = db.session.get(User, user_id)
    if not user or not user.is_active:
        raise AuthenticationError("Invalid or expired token")
    if user.shop_id is not None and (not user.shop or not user.shop.is_active):
        raise AuthenticationError("Invalid or expired token")
    return user


def change_password(user: User, new_password: str) -> None:
    user.password_hash = hash_password(new_password)
    db.session.commit()
