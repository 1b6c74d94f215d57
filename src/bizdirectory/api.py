from __future__ import annotations

from contextlib import asynccontextmanager
import logging
import os
from typing import Any, Optional

from fastapi import Body, FastAPI, HTTPException, Query, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from sqlalchemy.exc import SQLAlchemyError
from starlette.datastructures import UploadFile
from starlette.middleware.base import BaseHTTPMiddleware

from .categories import get_category, list_categories
from .config import load_config
from .courier import (
    PROVINCES,
    CityDirectoryClient,
    CourierClient,
    ExpiringTokenCache,
    load_areas,
    load_cities,
)
from .db import ping_database, session_scope, wait_for_database
from .errors import NotFoundError, SlugConflict, SubmissionInvalid
from .listings import (
    find_business,
    list_businesses,
    listed_business_slugs,
    parse_cursor,
    parse_page_params,
    search_suggestions,
    serialize_business,
)
from .media import CloudinaryUploader
from .queries import BusinessQuery, build_business_filter
from .reviews import list_reviews, submit_review
from .schemas import ReviewSubmission, validate_payload
from .sitemap import build_sitemap
from .submissions import submit_business

logger = logging.getLogger(__name__)

PROVINCES_CACHE_CONTROL = "s-maxage=86400, stale-while-revalidate=604800"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        return response


def _parse_origins() -> list[str]:
    raw = os.getenv(
        "FRONTEND_ORIGINS",
        ",".join(
            [
                "http://localhost:3000",
                "http://127.0.0.1:3000",
                "http://localhost:5173",
                "http://127.0.0.1:5173",
            ]
        ),
    )
    return [entry.strip() for entry in raw.split(",") if entry.strip()]


def create_app() -> FastAPI:
    config = load_config()
    token_cache = ExpiringTokenCache()
    courier_client = CourierClient(config, token_cache)
    city_client = CityDirectoryClient(config)
    uploader = CloudinaryUploader(config)

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        await run_in_threadpool(wait_for_database)
        yield

    app = FastAPI(title="Business Directory API", version="0.1.0", lifespan=lifespan)
    app.state.config = config
    app.state.token_cache = token_cache

    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_parse_origins(),
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    @app.exception_handler(NotFoundError)
    async def not_found_handler(_: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(SubmissionInvalid)
    async def invalid_submission_handler(_: Request, exc: SubmissionInvalid) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": "Validation failed", "errors": exc.errors})

    @app.exception_handler(SlugConflict)
    async def slug_conflict_handler(_: Request, exc: SlugConflict) -> JSONResponse:
        logger.warning("%s", exc)
        return JSONResponse(status_code=409, content={"detail": "Could not allocate a unique slug, please retry"})

    @app.exception_handler(SQLAlchemyError)
    async def storage_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
        logger.exception("Storage error on %s %s", request.method, request.url.path, exc_info=exc)
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    @app.get("/api/business")
    def api_business(
        id: Optional[str] = Query(default=None),
        slug: Optional[str] = Query(default=None),
        category: Optional[str] = Query(default=None),
        sub_category: Optional[str] = Query(default=None, alias="subCategory"),
        province: Optional[str] = Query(default=None),
        city: Optional[str] = Query(default=None),
        area: Optional[str] = Query(default=None),
        status: Optional[str] = Query(default=None),
        q: Optional[str] = Query(default=None),
        page: Optional[str] = Query(default=None),
        limit: Optional[str] = Query(default=None),
        after: Optional[str] = Query(default=None),
    ) -> dict:
        with session_scope() as session:
            if (id and id.strip()) or (slug and slug.strip()):
                row = find_business(
                    session,
                    business_id=id.strip() if id else None,
                    slug=slug.strip() if slug else None,
                )
                return {"business": serialize_business(row, config.cloudinary_cloud_name)}

            query = BusinessQuery(
                category=category,
                sub_category=sub_category,
                province=province,
                city=city,
                area=area,
                status=status,
                q=q,
            )
            page_num, page_size = parse_page_params(page, limit)
            logger.debug("Listing businesses %s page=%d limit=%d", query.cleaned(), page_num, page_size)
            return list_businesses(
                session,
                build_business_filter(query),
                page=page_num,
                limit=page_size,
                after=parse_cursor(after),
                cloud_name=config.cloudinary_cloud_name,
            )

    @app.post("/api/business", status_code=201)
    async def api_create_business(request: Request) -> dict:
        form = await request.form()
        fields = {key: value for key, value in form.items() if isinstance(value, str)}

        logo = None
        upload = form.get("logo")
        if isinstance(upload, UploadFile) and upload.filename:
            content = await upload.read()
            if content:
                logo = (upload.filename, content, upload.content_type)

        row = await run_in_threadpool(submit_business, fields, logo, uploader)
        return {"business": serialize_business(row, config.cloudinary_cloud_name)}

    @app.get("/api/reviews")
    def api_reviews(business_id: Optional[str] = Query(default=None, alias="businessId")) -> dict:
        if not business_id or not business_id.strip():
            raise HTTPException(status_code=400, detail="businessId is required")
        with session_scope() as session:
            business = find_business(session, business_id=business_id.strip())
            return list_reviews(session, business)

    @app.post("/api/reviews", status_code=201)
    def api_create_review(payload: dict[str, Any] = Body(default={})) -> dict:
        data = dict(payload)
        if not data.get("businessId") and data.get("business"):
            data["businessId"] = data["business"]
        review = validate_payload(ReviewSubmission, data)

        with session_scope() as session:
            business = find_business(session, business_id=review.business_id)
            review = review.model_copy(update={"business_id": str(business.id)})
            return submit_review(session, review)

    @app.get("/api/categories")
    def api_categories(
        q: Optional[str] = Query(default=None),
        limit: Optional[str] = Query(default=None),
        slug: Optional[str] = Query(default=None),
    ) -> dict:
        with session_scope() as session:
            if slug and slug.strip():
                return {"category": get_category(session, slug.strip())}
            return {"categories": list_categories(session, q=q, limit=limit)}

    @app.get("/api/cities")
    def api_cities() -> dict:
        with session_scope() as session:
            return {"cities": load_cities(city_client, session)}

    @app.get("/api/provinces")
    def api_provinces() -> JSONResponse:
        return JSONResponse(content=PROVINCES, headers={"Cache-Control": PROVINCES_CACHE_CONTROL})

    @app.get("/api/areas")
    def api_areas(city_id: Optional[str] = Query(default=None, alias="cityId")) -> dict:
        if not city_id or not city_id.strip():
            raise HTTPException(status_code=400, detail="cityId is required")
        return {"areas": load_areas(courier_client, city_id.strip())}

    @app.get("/api/search")
    def api_search(q: Optional[str] = Query(default=None)) -> dict:
        with session_scope() as session:
            return search_suggestions(session, q)

    @app.get("/api/sitemap.xml")
    def api_sitemap() -> Response:
        with session_scope() as session:
            slugs = listed_business_slugs(session)
        return Response(content=build_sitemap(config.site_url, slugs), media_type="application/xml")

    @app.get("/api/db-health")
    def api_db_health() -> JSONResponse:
        try:
            ping_database()
        except SQLAlchemyError as exc:
            logger.warning("Database health check failed: %s", exc)
            return JSONResponse(status_code=503, content={"ok": False})
        return JSONResponse(content={"ok": True})

    return app


app = create_app()
