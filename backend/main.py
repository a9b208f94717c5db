"""FastAPI backend for Swarm Chat."""

import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from backend.api import chat_router, health_router
from backend.config import BACKEND_PORT, LOG_LEVEL, STORAGE_BACKEND, get_cors_origins
from backend.db.pool import close_pool, init_pool
from backend.http_pool import close_http_client, init_http_client
from backend.redis_client import close_redis_pool, init_redis_pool, is_redis_configured

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Swarm Chat API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Stream-Id"],
)

app.include_router(chat_router)
app.include_router(health_router)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed request bodies are a 400, not FastAPI's default 422."""
    logger.warning(f"Invalid request to {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=400,
        content={"detail": "Invalid request body", "errors": jsonable_encoder(exc.errors())},
    )


@app.on_event("startup")
async def startup_event():
    await init_http_client()

    if STORAGE_BACKEND == "postgres":
        await init_pool()
    else:
        logger.info(f"Using {STORAGE_BACKEND} chat storage")

    if is_redis_configured():
        try:
            await init_redis_pool()
        except Exception as e:
            logger.warning(f"Redis unavailable, resumable streams disabled: {e}")
    else:
        logger.info("Redis not configured, resumable streams disabled")


@app.on_event("shutdown")
async def shutdown_event():
    await close_redis_pool()
    await close_pool()
    await close_http_client()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=BACKEND_PORT)
