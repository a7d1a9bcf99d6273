"""Server-rendered pages for the audience and the operator."""
from typing import Optional

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.orm import Session

from requestline.core.security import get_optional_operator, require_operator
from requestline.core.templates import templates
from requestline.db.session import get_db
from requestline.schemas.auth import OperatorIdentity
from requestline.services.playback import playback_controller

router = APIRouter()


@router.get("/", response_class=HTMLResponse, summary="首页")
def home(
    request: Request,
    db: Session = Depends(get_db),
    operator: Optional[OperatorIdentity] = Depends(get_optional_operator),
):
    view = playback_controller.public_view(db, operator)
    return templates.TemplateResponse(request, "home.html", {"view": view})


@router.get("/list", response_class=HTMLResponse, summary="已播放列表")
def archive_list(
    request: Request,
    db: Session = Depends(get_db),
    operator: Optional[OperatorIdentity] = Depends(get_optional_operator),
):
    view = playback_controller.archive_view(db, operator)
    return templates.TemplateResponse(request, "list.html", {"view": view})


@router.get("/request", response_class=HTMLResponse, summary="点歌表单")
def request_form(
    request: Request,
    operator: Optional[OperatorIdentity] = Depends(get_optional_operator),
):
    return templates.TemplateResponse(
        request, "request.html", {"is_authenticated": operator is not None}
    )


@router.post("/request", summary="提交点歌表单")
def submit_request(
    title: str = Form(""),
    performer: str = Form(""),
    requester: Optional[str] = Form(None),
    message: Optional[str] = Form(None),
    db: Session = Depends(get_db),
):
    playback_controller.submit(db, title=title, performer=performer, requester=requester, message=message)
    return RedirectResponse("/list", status_code=303)


@router.get("/admin", response_class=HTMLResponse, summary="操作员面板")
def admin_page(
    request: Request,
    db: Session = Depends(get_db),
    operator: OperatorIdentity = Depends(require_operator),
):
    view = playback_controller.admin_view(db, operator)
    return templates.TemplateResponse(request, "admin.html", {"view": view})


@router.post("/admin", summary="选择播放的请求")
def promote_from_queue(
    id: int = Form(...),
    db: Session = Depends(get_db),
    operator: OperatorIdentity = Depends(require_operator),
):
    playback_controller.promote(db, id)
    return RedirectResponse("/admin", status_code=303)
