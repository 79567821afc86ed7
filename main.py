from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging

from database import Base, engine
from errors import AppError
from settings import CORS_ALLOW_ORIGINS

import models  # noqa: F401  (registers every table)

from routers.analytics import router as analytics_router
from routers.auth import router as auth_router
from routers.billing import router as billing_router
from routers.dashboard import router as dashboard_router
from routers.descriptions import router as descriptions_router
from routers.generate import router as generate_router
from routers.pages import router as pages_router
from routers.products import router as products_router

log = logging.getLogger("uvicorn")

# no migrations: tables are created on boot
Base.metadata.create_all(bind=engine)

# ──────────────────────────────────────────────────────────────────────────────
# APP
app = FastAPI(title="SEO Product Descriptions")

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(CORS_ALLOW_ORIGINS) or ["*"],
    allow_credentials=True, allow_methods=["*"], allow_headers=["*"],
)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        log.error("[app] %s %s -> %s %s", request.method, request.url.path, exc.status_code, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    # auth failures, conflicts and unknown routes share the {"message": ...} body
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.get("/favicon.ico", include_in_schema=False)
def favicon():
    return Response("<svg xmlns='http://www.w3.org/2000/svg' viewBox='0 0 16 16'><text y='14'>S</text></svg>",
                    media_type="image/svg+xml")


@app.get("/health", include_in_schema=False)
def health():
    return {"ok": True}


@app.get("/healthz")
def healthz():
    return {"ok": True}


# ──────────────────────────────────────────────────────────────────────────────
# Routers
app.include_router(auth_router)
app.include_router(dashboard_router)
app.include_router(products_router)
app.include_router(generate_router)
app.include_router(descriptions_router)
app.include_router(analytics_router)
app.include_router(billing_router)
app.include_router(pages_router)

log.info("[routers] loaded")
