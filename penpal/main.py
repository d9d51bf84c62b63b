import logging
import time
import uuid

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.utils import get_openapi
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

import core.config as config
from core.logging import configure_logging, request_id_var
from penpal.errors import PenpalError
from penpal.routers.creatures import api as creatures_api
from penpal.routers.credits import api as credits_api
from penpal.routers.letters import api as letters_api

log_level = configure_logging(environment=config.ENVIRONMENT, log_level=config.LOG_LEVEL)
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title=config.APP_NAME,
    description="Backend API for Fantasy Letters - creatures, letters, credits and the physical mail desk",
    version=config.APP_VERSION,
    swagger_ui_parameters={
        "docExpansion": "none",
        "displayRequestDuration": True,
        "filter": True,
        "defaultModelsExpandDepth": 2,
        "defaultModelExpandDepth": 2,
    },
)


# Add security scheme
def custom_openapi():
    if app.openapi_schema:
        return app.openapi_schema
    openapi_schema = get_openapi(
        title=config.APP_NAME,
        version=config.APP_VERSION,
        description="""
        Fantasy Letters Backend API

        ## Authentication
        Endpoints require a Descope session token, except purchase confirmation,
        the Stripe webhook, internal cron endpoints and health checks.

        Format: `Authorization: Bearer <session_token>`
        """,
        routes=app.routes,
    )
    openapi_schema.setdefault("components", {})["securitySchemes"] = {
        "bearerAuth": {
            "type": "http",
            "scheme": "bearer",
            "bearerFormat": "JWT",
        }
    }
    openapi_schema["security"] = [{"bearerAuth": []}]
    app.openapi_schema = openapi_schema
    return openapi_schema


app.openapi = custom_openapi


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        request_id = str(uuid.uuid4())[:8]
        request_id_var.set(request_id)
        request.state.request_id = request_id

        start_time = time.time()

        query_str = f"?{request.url.query}" if request.query_params else ""
        logger.info(
            f"REQUEST | id={request_id} | method={request.method} | path={request.url.path}{query_str} | "
            f"ip={request.client.host if request.client else 'unknown'}"
        )

        try:
            response = await call_next(request)
        except Exception as e:
            process_time = time.time() - start_time
            logger.error(
                f"ERROR | id={request_id} | method={request.method} | path={request.url.path} | "
                f"error={type(e).__name__}: {str(e)} | time={process_time:.3f}s",
                exc_info=True,
            )
            raise

        process_time = time.time() - start_time
        logger.info(
            f"RESPONSE | id={request_id} | method={request.method} | path={request.url.path} | "
            f"status={response.status_code} | time={process_time:.3f}s"
        )
        response.headers["X-Request-ID"] = request_id
        return response


# Add request logging middleware (before CORS so it logs all requests)
app.add_middleware(RequestLoggingMiddleware)

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*", "Authorization", "Content-Type", "Accept", "Origin", "X-Requested-With"],
)


@app.exception_handler(PenpalError)
async def penpal_error_handler(request: Request, exc: PenpalError):
    if exc.status_code >= 500:
        logger.error(f"{exc.code} on {request.method} {request.url.path}: {exc.detail}")
    else:
        logger.info(f"{exc.code} on {request.method} {request.url.path}: {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.code, "detail": exc.detail},
        headers=exc.headers,
    )


@app.on_event("startup")
async def startup_event():
    logger.info(f"{config.APP_NAME} started successfully (environment: {config.ENVIRONMENT})")

    from fastapi.routing import APIRoute

    logger.info("=== Registered Routes ===")
    for route in app.routes:
        if isinstance(route, APIRoute):
            methods = ",".join(route.methods)
            logger.info(f"{methods:8} {route.path}")
    logger.info("=== End of Routes ===")


@app.get("/")
async def read_root():
    """
    Root endpoint to check if the server is running.
    Returns basic API information.
    """
    return {
        "status": "online",
        "message": f"Welcome to {config.APP_NAME}!",
        "version": config.APP_VERSION,
        "environment": config.ENVIRONMENT,
    }


@app.get("/health")
@app.get("/api/v1/health")
async def health_check():
    """
    Health check endpoint for monitoring.
    """
    return {"status": "healthy"}


app.include_router(creatures_api.router, prefix="/api/v1")
app.include_router(letters_api.router, prefix="/api/v1")
app.include_router(credits_api.router, prefix="/api/v1")
