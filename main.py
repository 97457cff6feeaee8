import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException

from shared.config.database import engine, Base
from shared.errors import ShopError
from shared.observability import setup_observability
from shared.responses import fail
from shared.security import limiter

# IMPORTANT: import models so they register with Base
from services.product_service import models as product_models
from services.cart_service import models as cart_models
from services.order_service import models as order_models

from services.product_service.router import router as product_router
from services.cart_service.router import router as cart_router
from services.order_service.router import router as order_router

logger = structlog.get_logger(__name__)


async def shop_error_handler(request: Request, exc: ShopError):
    logger.info("request_rejected", path=request.url.path, error=type(exc).__name__, detail=exc.message)
    return JSONResponse(status_code=exc.status_code, content=fail(exc.message))


async def validation_error_handler(request: Request, exc: RequestValidationError):
    first = exc.errors()[0] if exc.errors() else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request")
    if location:
        message = f"{location}: {message}"
    return JSONResponse(status_code=400, content=fail(message))


async def http_error_handler(request: Request, exc: HTTPException):
    return JSONResponse(status_code=exc.status_code, content=fail(str(exc.detail)), headers=exc.headers)


async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    return JSONResponse(status_code=429, content=fail(f"Rate limit exceeded: {exc.detail}"))


def create_app() -> FastAPI:
    app = FastAPI(title="Storefront API", version="1.0.0")

    # --- OBSERVABILITY BOOTSTRAP ---
    setup_observability(app, "storefront")

    # --- SECURITY SETUP ---
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)

    # --- ERROR ENVELOPES ---
    app.add_exception_handler(ShopError, shop_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(HTTPException, http_error_handler)

    app.include_router(product_router)
    app.include_router(cart_router)
    app.include_router(order_router)

    @app.get("/health", include_in_schema=False)
    async def health_check():
        return {"service": "storefront", "status": "running"}

    @app.on_event("startup")
    async def startup_event():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    return app


app = create_app()
