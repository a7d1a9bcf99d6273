from requestline.db.models.playback_guard import PlaybackGuard
from requestline.db.models.revoked_session import RevokedSession
from requestline.db.models.song_request import SongRequest, RequestStatus

# 导出所有模型
__all__ = ["PlaybackGuard", "RevokedSession", "SongRequest", "RequestStatus"]
