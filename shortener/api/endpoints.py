"""
FastAPI Endpoints for URL Shortener Service

Endpoints only handle:
- Request parsing (Pydantic models)
- Translating service exceptions into HTTP status codes
- Delegating to the service layer

Services are created once at startup and read from app.state.

The redirect route captures every single-segment path, so it is declared
last and fixed routes are matched first.
"""

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import RedirectResponse

from shortener.api.schemas import (
    ErrorResponse,
    ShortenRequest,
    ShortenResponse,
    StatsResponse,
    URLInfoResponse,
)
from shortener.core.exceptions import (
    InvalidSlugError,
    InvalidURLError,
    ShortCodeNotFoundError,
    SlugConflictError,
    StorageError,
)
from shortener.core.validators import sanitize_short_code
from shortener.services.stats_service import StatsService
from shortener.services.url_service import URLInfo, URLShorteningService

router = APIRouter()

NOT_FOUND_MESSAGE = "URL not found"


def get_url_service(request: Request) -> URLShorteningService:
    return request.app.state.url_service


def get_stats_service(request: Request) -> StatsService:
    return request.app.state.stats_service


def to_info_response(info: URLInfo) -> URLInfoResponse:
    return URLInfoResponse(
        short_url=info.short_url,
        long_url=info.long_url,
        created_at=info.created_at,
        access_count=info.access_count,
    )


def _clean_code_or_404(short_code: str) -> str:
    sanitized_code = sanitize_short_code(short_code)
    if not sanitized_code:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NOT_FOUND_MESSAGE)
    return sanitized_code


@router.post(
    "/api/shorten",
    response_model=ShortenResponse,
    status_code=status.HTTP_200_OK,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
    summary="Create a short URL",
    description="Takes a long URL and an optional custom slug and returns the short URL"
)
async def create_short_url(
    body: ShortenRequest,
    url_service: URLShorteningService = Depends(get_url_service)
) -> ShortenResponse:
    try:
        result = await url_service.create_short_url(body.long_url, body.custom_slug)
    except (InvalidURLError, InvalidSlugError) as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except SlugConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except StorageError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to save URL"
        )

    return ShortenResponse(short_url=result.short_url, long_url=result.long_url)


@router.get(
    "/api/info/{short_code}",
    response_model=URLInfoResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Get URL information",
    description="Returns the destination, creation time and access count of a short URL"
)
async def get_url_info(
    short_code: str,
    request: Request,
    url_service: URLShorteningService = Depends(get_url_service)
) -> URLInfoResponse:
    short_code = _clean_code_or_404(short_code)
    request.state.short_code = short_code
    try:
        info = await url_service.get_info(short_code)
    except ShortCodeNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NOT_FOUND_MESSAGE)
    except StorageError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Invalid URL data"
        )
    return to_info_response(info)


@router.get(
    "/admin/stats",
    response_model=StatsResponse,
    summary="Get service statistics",
    description="Returns total URLs, total clicks and the five most clicked URLs"
)
async def get_stats(
    stats_service: StatsService = Depends(get_stats_service)
) -> StatsResponse:
    try:
        summary = await stats_service.get_stats()
    except StorageError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get stats"
        )
    return StatsResponse(
        total_urls=summary.total_urls,
        total_clicks=summary.total_clicks,
        top_urls=[to_info_response(info) for info in summary.top_urls],
    )


@router.get(
    "/{short_code}",
    status_code=status.HTTP_301_MOVED_PERMANENTLY,
    responses={404: {"model": ErrorResponse}},
    summary="Redirect to original URL",
    description="Takes a short code and permanently redirects to the original long URL"
)
async def redirect_to_url(
    short_code: str,
    request: Request,
    url_service: URLShorteningService = Depends(get_url_service)
) -> RedirectResponse:
    """
    Redirect to the original URL for a given short code.

    The click is counted in the background after the response is decided.

    Raises:
        HTTPException 404: If short code is malformed, reserved or unknown
        HTTPException 500: If the stored record cannot be read
    """
    short_code = _clean_code_or_404(short_code)
    request.state.short_code = short_code
    try:
        long_url = await url_service.resolve(short_code)
    except ShortCodeNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NOT_FOUND_MESSAGE)
    except StorageError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Invalid URL data"
        )

    request.state.redirect_to = long_url
    return RedirectResponse(url=long_url, status_code=status.HTTP_301_MOVED_PERMANENTLY)
