from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class OperatorIdentity(BaseModel):
    """身份提供方返回的操作员信息"""
    operator_id: str
    display_name: Optional[str] = None
    # 仅在解码会话令牌后存在
    session_id: Optional[str] = None
    expires_at: Optional[datetime] = None


class GoogleTokenResponse(BaseModel):
    access_token: str
    token_type: str = "Bearer"
    expires_in: Optional[int] = None
    id_token: Optional[str] = None
