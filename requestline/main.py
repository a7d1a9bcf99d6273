import logging

from fastapi import FastAPI

from requestline.api import admin, auth, pages, requests
from requestline.core.config import settings
from requestline.core.errors import register_exception_handlers
from requestline.middleware.security import SecurityHeadersMiddleware

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

# 创建FastAPI应用实例
app = FastAPI(title=settings.PROJECT_NAME,
    description="Audience song requests for a live event; one signed-in operator picks what plays next.",
    version="1.0.0")

app.add_middleware(SecurityHeadersMiddleware)
register_exception_handlers(app)


# 注册路由
app.include_router(requests.router, prefix=f"{settings.API_V1_STR}/requests", tags=["点歌"])
app.include_router(admin.router, prefix=f"{settings.API_V1_STR}/admin", tags=["操作员"])
app.include_router(auth.router, tags=["登录"])
app.include_router(pages.router, tags=["页面"])


@app.get(f"{settings.API_V1_STR}",description="API根路径", summary="API根路径",
         responses={
                200: {
                    "description": "欢迎信息",
                    "content": {
                        "application/json": {
                            "example": {"message": "Welcome to the Request Line API"}
                        }
                    }
                }
         })
def read_root():
    return {"message": "Welcome to the Request Line API"}
