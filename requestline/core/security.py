from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from requestline.core.config import settings
from requestline.core.errors import Unauthorized
from requestline.db.repositories import revoked_session_repository
from requestline.db.session import get_db
from requestline.schemas.auth import OperatorIdentity
from requestline.services.auth import decode_session_token


def get_optional_operator(request: Request, db: Session = Depends(get_db)) -> Optional[OperatorIdentity]:
    """
    从会话Cookie或Bearer令牌中获取操作员，未登录或会话已结束时返回None
    """
    token = request.cookies.get(settings.SESSION_COOKIE_NAME)
    if not token:
        authorization = request.headers.get("authorization", "")
        if authorization.startswith("Bearer "):
            token = authorization.split(" ", 1)[1]
    if not token:
        return None
    operator = decode_session_token(token)
    if operator is None or revoked_session_repository.is_revoked(db, operator.session_id):
        return None
    return operator


def require_operator(
    operator: Optional[OperatorIdentity] = Depends(get_optional_operator),
) -> OperatorIdentity:
    """要求操作员会话"""
    if operator is None:
        raise Unauthorized()
    return operator


def end_operator_session(db: Session, operator: OperatorIdentity) -> None:
    """使当前会话令牌失效，之后持有同一令牌的请求都按未登录处理"""
    revoked_session_repository.revoke(db, operator.session_id, operator.operator_id, operator.expires_at)
