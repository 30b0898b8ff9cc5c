import logging
import time
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from .shared.config import settings
from .shared.logging import setup_logging
from .shared.utils import utcnow
from .auth.router import router as auth_router
from .causas.router import router as causas_router
from .service.router import router as service_router
from .stats.router import router as stats_router
from .worker_config.router import router as config_router
from .manager.router import router as manager_router

logger = logging.getLogger("eje_api")


def create_app() -> FastAPI:
    setup_logging()
    app = FastAPI(
        title="EJE API", version="1.0.0", openapi_url=f"{settings.API_PREFIX}/openapi.json"
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "x-api-key", "api-key"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(
            "%s %s %s %.1fms",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
        )
        return response

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception):
        logger.exception("unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content={"success": False, "message": "Internal server error", "error": str(exc)},
        )

    @app.get(f"{settings.API_PREFIX}/health")
    def health():
        return {
            "success": True,
            "message": "EJE API is running",
            "timestamp": utcnow().isoformat() + "Z",
            "environment": settings.APP_ENV,
        }

    @app.get("/")
    def root():
        return {"success": True, "message": "EJE API", "docs": "/docs"}

    app.include_router(auth_router)
    app.include_router(causas_router)
    app.include_router(service_router)
    app.include_router(stats_router)
    app.include_router(config_router)
    app.include_router(manager_router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("eje_api.main:app", host="0.0.0.0", port=3004)
