from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.core.exceptions import BaseCustomException, create_error_response
from app.core.logging import configure_logging
from app.api.v1.api import api_router
from app.infrastructure.lab_api import lab_api_manager
from app.middleware.request_id_middleware import RequestIdMiddleware


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.LOG_LEVEL)
    await lab_api_manager.connect()
    try:
        yield
    finally:
        await lab_api_manager.disconnect()


app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# Set all CORS enabled origins
if settings.BACKEND_CORS_ORIGINS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[str(origin) for origin in settings.BACKEND_CORS_ORIGINS],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

app.add_middleware(RequestIdMiddleware)

app.include_router(api_router, prefix=settings.API_V1_STR)


@app.exception_handler(BaseCustomException)
async def custom_exception_handler(request: Request, exc: BaseCustomException):
    request_id = getattr(request.state, "request_id", None)
    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(exc, request_id=request_id),
    )


@app.get("/health")
async def health_check():
    return {
        "status": "ok",
        "lab_api": "up" if await lab_api_manager.is_healthy() else "down",
    }
