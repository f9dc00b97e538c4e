from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from golinks_app.dependencies import get_url_service
from golinks_app.schemas.link import LinkRow, LinkUpdate, ShortenRequest, ShortenResponse
from golinks_app.schemas.settings import HostSettingsResponse, HostSettingsUpdate
from golinks_app.services.errors import CodeConflictError, InvalidInputError, LinkNotFoundError
from golinks_app.services.url_service import URLService

router = APIRouter(tags=["management"])


def settings_response(config) -> HostSettingsResponse:
    return HostSettingsResponse(public_host=config.public_host, **config.as_settings())


@router.post("/shorten", response_model=ShortenResponse, status_code=status.HTTP_201_CREATED)
async def create_short_url(
    body: ShortenRequest,
    url_service: URLService = Depends(get_url_service)
):
    """Create a short link under a custom or generated code"""
    try:
        return await url_service.create_short_url(body)
    except InvalidInputError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except CodeConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.get("/urls", response_model=List[LinkRow])
async def list_urls(url_service: URLService = Depends(get_url_service)):
    """All links, newest first"""
    records = await url_service.list_urls()
    return [LinkRow.model_validate(record) for record in records]


@router.patch("/urls/{code}", status_code=status.HTTP_204_NO_CONTENT)
async def update_url(
    code: str,
    body: LinkUpdate,
    url_service: URLService = Depends(get_url_service)
):
    """Partial update; a new `code` renames the link"""
    try:
        await url_service.update_url(code, body)
    except LinkNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except CodeConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except InvalidInputError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.delete("/urls/{code}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_url(
    code: str,
    url_service: URLService = Depends(get_url_service)
):
    try:
        await url_service.delete_url(code)
    except LinkNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.get("/settings", response_model=HostSettingsResponse)
async def get_settings(url_service: URLService = Depends(get_url_service)):
    return settings_response(await url_service.get_host_settings())


@router.patch("/settings", status_code=status.HTTP_204_NO_CONTENT)
async def update_settings(
    body: HostSettingsUpdate,
    url_service: URLService = Depends(get_url_service)
):
    """Change hostnames live; every key is persisted"""
    await url_service.update_host_settings(body.provided())
