import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.api.routes.admin_coupons import router as admin_coupons_router
from app.api.routes.admin_moderation import router as admin_moderation_router
from app.api.routes.coupons import router as coupons_router
from app.api.routes.health import router as health_router
from app.api.routes.listings import router as listings_router
from app.api.routes.packages import router as packages_router
from app.api.routes.payments import router as payments_router
from app.core.config import get_settings
from app.core.logging import configure_logging


async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # Input values are not echoed back; only the location and kind of each problem.
    errors = [
        {"loc": [str(part) for part in error.get("loc", ())], "type": error.get("type")}
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": {"code": "E_VALIDATION", "errors": errors}},
    )


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level, json_logs=settings.app_env != "dev")

    app = FastAPI(
        title="Listing Activation API",
        version="0.1.0",
        docs_url="/docs" if settings.enable_openapi_docs else None,
        redoc_url="/redoc" if settings.enable_openapi_docs else None,
        openapi_url="/openapi.json" if settings.enable_openapi_docs else None,
    )
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.include_router(health_router)
    app.include_router(listings_router)
    app.include_router(packages_router)
    app.include_router(payments_router)
    app.include_router(coupons_router)
    app.include_router(admin_moderation_router)
    app.include_router(admin_coupons_router)
    return app


app = create_app()


def run() -> None:
    settings = get_settings()
    uvicorn.run(
        "app.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=settings.app_env == "dev",
    )


if __name__ == "__main__":
    run()
