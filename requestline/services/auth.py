"""Operator identity: Google OAuth consent flow and the signed session token."""
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import httpx
import jwt

from requestline.core.config import settings
from requestline.schemas.auth import GoogleTokenResponse, OperatorIdentity

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"


def build_authorize_url(state: str | None = None) -> str:
    params = {
        "client_id": settings.GOOGLE_CLIENT_ID,
        "redirect_uri": settings.GOOGLE_REDIRECT_URI,
        "response_type": "code",
        "scope": "openid profile",
        "state": state or secrets.token_urlsafe(16),
    }
    return f"{settings.GOOGLE_AUTH_URL}?{urlencode(params)}"


def exchange_code_for_token(code: str) -> GoogleTokenResponse:
    response = httpx.post(
        settings.GOOGLE_TOKEN_URL,
        data={
            "code": code,
            "client_id": settings.GOOGLE_CLIENT_ID,
            "client_secret": settings.GOOGLE_CLIENT_SECRET,
            "redirect_uri": settings.GOOGLE_REDIRECT_URI,
            "grant_type": "authorization_code",
        },
        timeout=settings.OAUTH_TIMEOUT_SECONDS,
    )
    response.raise_for_status()
    return GoogleTokenResponse(**response.json())


def get_user_profile(access_token: str) -> Dict[str, Any]:
    response = httpx.get(
        settings.GOOGLE_USERINFO_URL,
        headers={"Authorization": f"Bearer {access_token}"},
        timeout=settings.OAUTH_TIMEOUT_SECONDS,
    )
    response.raise_for_status()
    return response.json()


def verify_google_code(code: str) -> Dict[str, Any]:
    """
    完成Google授权码交换，返回操作员身份

    Returns {"success": True, "identity": OperatorIdentity} or
    {"success": False, "msg": ...}.
    """
    try:
        token = exchange_code_for_token(code)
        profile = get_user_profile(token.access_token)
    except httpx.HTTPError as exc:
        logger.warning("Google code exchange failed: %s", exc)
        return {"success": False, "msg": "Google sign-in failed"}

    operator_id = profile.get("sub")
    if not operator_id:
        return {"success": False, "msg": "Google profile has no account id"}

    identity = OperatorIdentity(
        operator_id=str(operator_id),
        display_name=profile.get("given_name") or profile.get("name"),
    )
    if not is_operator_allowed(identity.operator_id):
        logger.warning("Google account %s is not on the operator allow-list", identity.operator_id)
        return {"success": False, "msg": "This account may not operate the request line"}

    return {"success": True, "identity": identity}


def is_operator_allowed(operator_id: str) -> bool:
    if not settings.OPERATOR_IDS:
        return True
    return operator_id in settings.OPERATOR_IDS


def create_session_token(identity: OperatorIdentity) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": identity.operator_id,
        "name": identity.display_name,
        "type": "operator",
        "jti": secrets.token_urlsafe(16),
        "iat": now,
        "exp": now + timedelta(hours=settings.SESSION_EXPIRE_HOURS),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=JWT_ALGORITHM)


def decode_session_token(token: str) -> Optional[OperatorIdentity]:
    try:
        payload = jwt.decode(
            token, settings.JWT_SECRET, algorithms=[JWT_ALGORITHM], options={"require": ["exp", "jti"]}
        )
    except jwt.ExpiredSignatureError:
        logger.info("Operator session expired")
        return None
    except jwt.InvalidTokenError:
        return None

    if payload.get("type") != "operator" or not payload.get("sub") or not payload.get("jti"):
        return None
    if not is_operator_allowed(str(payload["sub"])):
        return None
    return OperatorIdentity(
        operator_id=str(payload["sub"]),
        display_name=payload.get("name"),
        session_id=str(payload["jti"]),
        expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
    )
