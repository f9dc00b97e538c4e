from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse

from golinks_app.config import Settings
from golinks_app.dependencies import get_app_settings, get_url_service
from golinks_app.schemas.link import LinkRow
from golinks_app.services.url_service import URLService
from golinks_app.templating import templates

router = APIRouter(include_in_schema=False)


@router.get("/", response_class=HTMLResponse)
async def index(
    request: Request,
    url_service: URLService = Depends(get_url_service),
    settings: Settings = Depends(get_app_settings)
):
    """Management page: create form, link list and host settings"""
    config = await url_service.get_host_settings()
    links = [LinkRow.model_validate(r) for r in await url_service.list_urls()]
    return templates.TemplateResponse(
        request=request,
        name="index.html",
        context={
            "links": links,
            "base": config.public_base,
            "alias_base": config.alias_base,
            "ui_host": config.ui_host,
            "internal_host": config.internal_host,
            "alias_host": config.alias_host,
            "public_api_host": config.public_api_host,
            "version": settings.app_version,
        },
    )


@router.get("/health")
async def health_check(settings: Settings = Depends(get_app_settings)):
    """Health check endpoint"""
    return {
        "status": "healthy",
        "environment": settings.environment,
        "version": settings.app_version,
    }
