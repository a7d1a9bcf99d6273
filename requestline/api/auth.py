import hmac
import logging
import secrets

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from requestline.core.config import settings
from requestline.core.security import end_operator_session, require_operator
from requestline.db.session import get_db
from requestline.schemas.auth import OperatorIdentity
from requestline.services.auth import build_authorize_url, create_session_token, verify_google_code
from requestline.services.playback import playback_controller

logger = logging.getLogger(__name__)

router = APIRouter()

OAUTH_STATE_COOKIE = "requestline_oauth_state"


@router.get("/auth/google", summary="操作员登录", description="跳转到Google授权页面")
def google_login():
    state = secrets.token_urlsafe(16)
    response = RedirectResponse(build_authorize_url(state), status_code=303)
    response.set_cookie(OAUTH_STATE_COOKIE, state, max_age=600, httponly=True, samesite="lax")
    return response


@router.get("/auth/google/admin",
            summary="Google授权回调",
            description="用授权码换取操作员身份，写入会话Cookie后跳转到管理页面",
            responses={
                400: {
                    "description": "授权失败",
                    "content": {"application/json": {"example": {"detail": "Google sign-in failed"}}}
                }
            })
def google_callback(
    request: Request,
    code: str | None = Query(None),
    state: str | None = Query(None),
    error: str | None = Query(None),
):
    if error:
        raise HTTPException(status_code=400, detail=f"Google sign-in was not completed: {error}")
    if not code:
        raise HTTPException(status_code=400, detail="Missing authorization code")

    expected_state = request.cookies.get(OAUTH_STATE_COOKIE)
    if not expected_state or not state or not hmac.compare_digest(expected_state, state):
        raise HTTPException(status_code=400, detail="Sign-in state mismatch, please try again")

    result = verify_google_code(code)
    if not result["success"]:
        raise HTTPException(status_code=400, detail=result["msg"])

    identity: OperatorIdentity = result["identity"]
    logger.info("Operator %s signed in", identity.operator_id)

    response = RedirectResponse("/admin", status_code=303)
    response.set_cookie(
        settings.SESSION_COOKIE_NAME,
        create_session_token(identity),
        max_age=settings.SESSION_EXPIRE_HOURS * 3600,
        httponly=True,
        samesite="lax",
        secure=not settings.DEVELOP_MODE,
    )
    response.delete_cookie(OAUTH_STATE_COOKIE)
    return response


@router.get("/logout", summary="结束会话", description="归档正在播放的请求并退出登录")
def logout(
    db: Session = Depends(get_db),
    operator: OperatorIdentity = Depends(require_operator),
):
    playback_controller.end_session(db)
    end_operator_session(db, operator)
    logger.info("Operator %s signed out", operator.operator_id)

    response = RedirectResponse("/", status_code=303)
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return response
