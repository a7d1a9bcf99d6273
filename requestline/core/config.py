import os
from dotenv import load_dotenv
from typing import List

# 加载环境变量
load_dotenv()


def _split_csv(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings:
    # 项目基础配置
    PROJECT_NAME: str = "Request Line"
    API_V1_STR: str = "/api"
    DEVELOP_MODE: bool = os.getenv("DEVELOP_MODE", "true").lower() in ("true", "1", "yes")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # 数据库配置
    POSTGRES_USER: str = os.getenv("POSTGRES_USER", "postgres")
    POSTGRES_PASSWORD: str = os.getenv("POSTGRES_PASSWORD", "postgres")
    POSTGRES_HOST: str = os.getenv("POSTGRES_HOST", "localhost")
    POSTGRES_PORT: str = os.getenv("POSTGRES_PORT", "5432")
    POSTGRES_DB: str = os.getenv("POSTGRES_DB", "requestline")

    # 数据库连接URI, DATABASE_URI 整体覆盖
    DATABASE_URI: str = os.getenv(
        "DATABASE_URI",
        f"postgresql://{POSTGRES_USER}:{POSTGRES_PASSWORD}@{POSTGRES_HOST}:{POSTGRES_PORT}/{POSTGRES_DB}",
    )

    # 会话令牌
    JWT_SECRET: str = os.getenv("JWT_SECRET", "your-super-secret-key")
    SESSION_COOKIE_NAME: str = os.getenv("SESSION_COOKIE_NAME", "requestline_session")
    SESSION_EXPIRE_HOURS: int = int(os.getenv("SESSION_EXPIRE_HOURS", "12"))

    # Google OAuth
    GOOGLE_CLIENT_ID: str = os.getenv("G_CLIENT_ID", "")
    GOOGLE_CLIENT_SECRET: str = os.getenv("G_CLIENT_SECRET", "")
    GOOGLE_REDIRECT_URI: str = os.getenv("GOOGLE_REDIRECT_URI", "http://localhost:3000/auth/google/admin")
    GOOGLE_AUTH_URL: str = "https://accounts.google.com/o/oauth2/v2/auth"
    GOOGLE_TOKEN_URL: str = "https://oauth2.googleapis.com/token"
    GOOGLE_USERINFO_URL: str = "https://openidconnect.googleapis.com/v1/userinfo"
    OAUTH_TIMEOUT_SECONDS: float = float(os.getenv("OAUTH_TIMEOUT_SECONDS", "10"))

    # 操作员白名单（Google账号ID），为空时任何Google账号都可登录
    OPERATOR_IDS: List[str] = _split_csv(os.getenv("OPERATOR_IDS", ""))

    # 点歌字段长度限制
    MAX_TITLE_LENGTH: int = 200
    MAX_PERFORMER_LENGTH: int = 200
    MAX_REQUESTER_LENGTH: int = 100
    MAX_MESSAGE_LENGTH: int = 500

settings = Settings()
