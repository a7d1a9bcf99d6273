from requestline.db.repositories.revoked_session import revoked_session_repository
from requestline.db.repositories.song_request import song_request_repository

# 导出所有仓库
__all__ = [
    "revoked_session_repository",
    "song_request_repository",
]
