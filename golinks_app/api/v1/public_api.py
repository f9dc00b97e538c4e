"""
Password check and QR endpoints.

Served on the UI, internal and public-API hosts. js redirect pages on the
public and alias hosts post passwords here cross-origin, so /pass answers
CORS for exactly those origins.
"""

from typing import Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status

from golinks_app.dependencies import get_redirect_service, get_registry
from golinks_app.schemas.link import PasswordCheck, PasswordResult
from golinks_app.services.errors import InvalidInputError, LinkNotFoundError, PasswordMismatchError
from golinks_app.services.host_config import HostConfig, HostRegistry
from golinks_app.services.redirect_service import RedirectService, is_allowed_origin

router = APIRouter(tags=["public"])

QR_CACHE_CONTROL = "public, max-age=3600"


def cors_headers(origin: Optional[str], config: HostConfig) -> Dict[str, str]:
    if not is_allowed_origin(origin, config):
        return {}
    return {
        "Access-Control-Allow-Origin": origin,
        "Access-Control-Allow-Methods": "POST, OPTIONS",
        "Access-Control-Allow-Headers": "Content-Type",
        "Vary": "Origin",
    }


@router.options("/pass/{code}", status_code=status.HTTP_204_NO_CONTENT)
async def password_preflight(
    code: str,
    request: Request,
    registry: HostRegistry = Depends(get_registry)
):
    headers = cors_headers(request.headers.get("origin"), registry.snapshot())
    return Response(status_code=status.HTTP_204_NO_CONTENT, headers=headers)


@router.post("/pass/{code}", response_model=PasswordResult)
async def check_password(
    code: str,
    body: PasswordCheck,
    request: Request,
    response: Response,
    redirect_service: RedirectService = Depends(get_redirect_service),
    registry: HostRegistry = Depends(get_registry)
):
    """Return the destination of a password-protected link"""
    headers = cors_headers(request.headers.get("origin"), registry.snapshot())
    try:
        url = await redirect_service.check_password(code, body.password)
    except LinkNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e), headers=headers)
    except InvalidInputError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e), headers=headers)
    except PasswordMismatchError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e), headers=headers)

    response.headers.update(headers)
    return PasswordResult(url=url)


@router.get("/qr/{code}")
async def qr_code(
    code: str,
    redirect_service: RedirectService = Depends(get_redirect_service)
):
    """PNG QR code of the link's public short URL"""
    try:
        png = await redirect_service.qr_png(code)
    except LinkNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return Response(
        content=png,
        media_type="image/png",
        headers={"Cache-Control": QR_CACHE_CONTROL},
    )
