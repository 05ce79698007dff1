import os
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from functools import wraps
from pathlib import Path

import jwt
from dotenv import dotenv_values
from flask import current_app, g, request

from .errors import Forbidden, Unauthorized
from .models import ROLE_ADMIN, ROLE_PARTNER


@dataclass(frozen=True)
class AuthContext:
    """The caller identity carried in a bearer token."""
    id: int
    role: str
    approved: bool = False

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    @property
    def is_partner(self) -> bool:
        return self.role == ROLE_PARTNER

    def can_manage(self, restaurant_id: int) -> bool:
        return self.is_admin or (self.is_partner and self.id == restaurant_id)


def _get_jwt_secret() -> str:
    secret = current_app.config.get("JWT_SECRET") or os.getenv("JWT_SECRET")
    if secret and secret.strip():
        return secret.strip()

    root = Path(__file__).resolve().parents[1]
    env_path = root / ".env"
    if env_path.exists():
        secret = dotenv_values(str(env_path)).get("JWT_SECRET")
        if secret and secret.strip():
            return secret.strip()

    return "dev-jwt-secret"


def issue_token(user, expires_hours: int | None = None) -> str:
    hours = expires_hours or current_app.config["JWT_EXPIRES_HOURS"]
    payload = {
        "id": user.id,
        "role": user.role,
        "approved": bool(user.approved),
        "exp": datetime.now(tz=timezone.utc) + timedelta(hours=hours),
    }
    return jwt.encode(payload, _get_jwt_secret(), algorithm=current_app.config["JWT_ALGORITHM"])


def decode_token(token: str) -> AuthContext:
    try:
        claims = jwt.decode(token, _get_jwt_secret(), algorithms=[current_app.config["JWT_ALGORITHM"]])
    except jwt.ExpiredSignatureError:
        raise Unauthorized("Token expired.")
    except jwt.InvalidTokenError:
        raise Unauthorized("Invalid token.")

    try:
        user_id = int(claims["id"])
    except (KeyError, TypeError, ValueError):
        raise Unauthorized("Invalid token.")
    return AuthContext(
        id=user_id,
        role=str(claims.get("role", "")).lower(),
        approved=bool(claims.get("approved", False)),
    )


def current_auth() -> AuthContext:
    """
    Reads the Authorization header and returns the caller's AuthContext.
    """
    auth_header = request.headers.get("Authorization", "").strip()
    if not auth_header.lower().startswith("bearer "):
        raise Unauthorized("Access denied. No token provided.")

    return decode_token(auth_header[7:].strip())


def require_auth(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        g.auth = current_auth()
        return view(*args, **kwargs)
    return wrapper


def require_partner(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        ctx = current_auth()
        if not ctx.is_partner:
            raise Forbidden("Access denied. Partner role required.")
        g.auth = ctx
        return view(*args, **kwargs)
    return wrapper


def require_admin(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        ctx = current_auth()
        if not ctx.is_admin:
            raise Forbidden("Access denied. Admin role required.")
        g.auth = ctx
        return view(*args, **kwargs)
    return wrapper
