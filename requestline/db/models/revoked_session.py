from sqlalchemy import Column, DateTime, String

from requestline.db.models.base import BaseModel


class RevokedSession(BaseModel):
    """已结束的操作员会话，令牌过期前一直保留"""
    __tablename__ = "revoked_sessions"

    # 会话令牌的jti
    session_id = Column(String(64), nullable=False, unique=True, index=True)
    operator_id = Column(String(128), nullable=False)
    # 令牌原本的过期时间(UTC)
    expires_at = Column(DateTime, nullable=False, index=True)
