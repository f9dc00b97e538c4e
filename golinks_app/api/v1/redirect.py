from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import RedirectResponse

from golinks_app.dependencies import get_redirect_service
from golinks_app.models.link import RedirectType
from golinks_app.routing.host_router import effective_host, request_scheme
from golinks_app.services.errors import LinkNotFoundError
from golinks_app.services.redirect_service import RedirectService
from golinks_app.templating import templates

PAGE_TEMPLATES = {
    RedirectType.META: "meta_redirect.html",
    RedirectType.JS: "js_redirect.html",
}


def build_redirect_router(internal: bool) -> APIRouter:
    """
    Catch-all `/{code}` route for one access context. Include it after every
    other route of the app.
    """
    router = APIRouter(tags=["redirect"])

    @router.get("/{code}")
    async def redirect_to_long_url(
        code: str,
        request: Request,
        redirect_service: RedirectService = Depends(get_redirect_service)
    ):
        """
        Resolve a short code and send the client on.

        Unknown, disabled, expired and used-up links all get the same 404.
        """
        try:
            record = await redirect_service.resolve(code, internal)
        except LinkNotFoundError:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="short URL not found"
            )

        if record.redirect_type == RedirectType.REDIRECT:
            return RedirectResponse(url=record.long_url, status_code=status.HTTP_302_FOUND)

        context = redirect_service.page_context(
            record,
            internal,
            scheme=request_scheme(request),
            request_host=effective_host(request.headers),
        )
        return templates.TemplateResponse(
            request=request,
            name=PAGE_TEMPLATES[record.redirect_type],
            context=context,
        )

    return router
