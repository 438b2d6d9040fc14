import datetime as dt
from typing import Any, Dict, Optional

import jwt
from django.conf import settings
from django.contrib.auth import get_user_model
from ninja.security import HttpBearer

User = get_user_model()


def _secret() -> str:
    return getattr(settings, "JWT_SECRET", None) or settings.SECRET_KEY


def _algorithm() -> str:
    return getattr(settings, "JWT_ALGORITHM", None) or "HS256"


def _user_from_token(token: str):
    try:
        payload = decode_token(token)
    except jwt.PyJWTError:
        return None
    user_id = payload.get("user_id") or payload.get("sub")
    if not user_id:
        return None
    try:
        return User.objects.get(id=user_id, is_active=True)
    except (User.DoesNotExist, ValueError):
        return None


class JWTAuth(HttpBearer):
    """Authenticate requests using a bearer JWT token."""

    def authenticate(self, request, token: str):
        return _user_from_token(token)


def extract_token(request) -> Optional[str]:
    """Return the bearer token from the Authorization header or access_token cookie."""
    auth_header = request.headers.get("Authorization") or request.META.get("HTTP_AUTHORIZATION")
    if auth_header and auth_header.startswith("Bearer "):
        return auth_header.split(" ", 1)[1].strip()
    return request.COOKIES.get("access_token")


def cookie_or_bearer_jwt_auth(request):
    """Authenticate via Authorization header or access_token cookie.

    Returns None for anonymous callers instead of rejecting them, so routes
    with public variants (preview lessons) can decide for themselves.
    """
    token = extract_token(request)
    if not token:
        return None
    return _user_from_token(token)


def _now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def decode_token(token: str) -> Dict[str, Any]:
    return jwt.decode(token, _secret(), algorithms=[_algorithm()])


def create_jwt_token(user) -> str:
    """Return a signed access token for the given user."""
    access_ttl = int(getattr(settings, "JWT_ACCESS_TTL_MIN", 60))
    now = _now()
    claims: Dict[str, Any] = {
        "sub": str(user.id),
        "type": "access",
        "iat": int(now.timestamp()),
        "nbf": int(now.timestamp()),
        "exp": int((now + dt.timedelta(minutes=access_ttl)).timestamp()),
    }
    email = getattr(user, "email", None)
    if email:
        claims["email"] = email
    return jwt.encode(claims, _secret(), algorithm=_algorithm())
