"""
Role-Based Access Control Module

Which views each role may open, who may create whom in the
owner -> supervisor -> collector -> client hierarchy, credential checks and
session tokens.
"""

import hashlib
import hmac
import logging
import secrets
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Dict, Iterable, Optional, Set, Tuple

import jwt

from .errors import AuthenticationError, PermissionDenied
from .models import Role, User

logger = logging.getLogger("gocash.rbac")


class View(Enum):
    """Screens of the application"""
    DASHBOARD = "dashboard"
    COLLECTOR = "collector"
    ADMIN = "admin"
    CLIENT = "client"
    SUPPORT = "support"


VIEW_ROLES: Dict[View, Set[Role]] = {
    View.DASHBOARD: {Role.OWNER, Role.SUPERVISOR},
    View.COLLECTOR: {Role.COLLECTOR, Role.SUPERVISOR, Role.OWNER},
    View.ADMIN: {Role.OWNER, Role.SUPERVISOR},
    View.CLIENT: {Role.CLIENT},
    View.SUPPORT: {Role.SUPPORT, Role.OWNER, Role.CLIENT, Role.COLLECTOR},
}

# Role each manager role is allowed to create
MANAGED_ROLE: Dict[Role, Role] = {
    Role.OWNER: Role.SUPERVISOR,
    Role.SUPERVISOR: Role.COLLECTOR,
    Role.COLLECTOR: Role.CLIENT,
}

LANDING_VIEW: Dict[Role, View] = {
    Role.COLLECTOR: View.COLLECTOR,
    Role.CLIENT: View.CLIENT,
}


def views_for(role: Role) -> Set[View]:
    return {view for view, roles in VIEW_ROLES.items() if role in roles}


def can_view(role: Role, view: View) -> bool:
    return role in VIEW_ROLES[view]


def require_view(user: User, view: View) -> None:
    if not can_view(user.role, view):
        raise PermissionDenied(f"Role {user.role.value} cannot access {view.value}")


def landing_view(role: Role) -> View:
    """View opened right after login"""
    return LANDING_VIEW.get(role, View.DASHBOARD)


def managed_role(role: Role) -> Role:
    """Role a manager creates; raises PermissionDenied for non-managers"""
    try:
        return MANAGED_ROLE[role]
    except KeyError:
        raise PermissionDenied(f"Role {role.value} cannot create users")


def can_manage(manager: User, user: User) -> bool:
    """Managers may only touch the users they created"""
    return user.parent_id == manager.id and MANAGED_ROLE.get(manager.role) == user.role


# Password handling

def generate_salt() -> str:
    return secrets.token_hex(16)


def hash_password(password: str, salt: str) -> str:
    """Hash password with salt using scrypt"""
    return hashlib.scrypt(
        password.encode(),
        salt=salt.encode(),
        n=16384, r=8, p=1
    ).hex()


def make_credentials(password: str) -> Tuple[str, str]:
    """Return (password_hash, password_salt) for a new password"""
    salt = generate_salt()
    return hash_password(password, salt), salt


def verify_password(user: User, password: str) -> bool:
    if not user.has_credentials:
        return False
    expected = hash_password(password, user.password_salt)
    return hmac.compare_digest(expected, user.password_hash)


def authenticate(users: Iterable[User], email: str, password: str, role: Role) -> User:
    """
    Find the user matching the credentials for the chosen role.

    Email comparison is case-insensitive; password and role must match.

    Raises:
        AuthenticationError: no user matches
    """
    wanted = email.strip().lower()
    for user in users:
        if user.email.lower() == wanted and user.role == role and verify_password(user, password):
            return user

    logger.warning(f"Rejected login for {wanted} as {role.value}")
    raise AuthenticationError("Invalid credentials for the selected role")


# Session tokens

def issue_token(user: User, secret: str, algorithm: str = "HS256",
                expiry_hours: int = 24, now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    payload = {
        "sub": user.id,
        "role": user.role.value,
        "iat": now,
        "exp": now + timedelta(hours=expiry_hours),
    }
    return jwt.encode(payload, secret, algorithm=algorithm)


def decode_token(token: str, secret: str, algorithm: str = "HS256") -> str:
    """Return the user id carried by a session token"""
    try:
        payload = jwt.decode(token, secret, algorithms=[algorithm])
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Token expired")
    except jwt.InvalidTokenError:
        raise AuthenticationError("Invalid token")

    user_id = payload.get("sub")
    if not user_id:
        raise AuthenticationError("Invalid token")
    return user_id
