import sys
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

import models  # noqa: F401  регистрирует таблицы в Base.metadata
from config import config
from database import Base, engine
from esl import EslConnectionError, EslError
from routes import auth, calls, cdr, config_items, recordings, system, users
from routes.freeswitch import (
    dialplans,
    domains,
    extensions,
    gateways,
    network_config,
    sip_profiles,
)

logger.remove()
logger.add(sys.stderr, level=config.LOG_LEVEL)


@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables are ready")
    yield


app = FastAPI(title="FreeSWITCH PBX Manager", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    elapsed = (time.perf_counter() - started) * 1000
    logger.info(
        f"{request.method} {request.url.path} -> {response.status_code} ({elapsed:.1f} ms)"
    )
    return response


@app.exception_handler(EslConnectionError)
async def esl_connection_error_handler(request: Request, exc: EslConnectionError):
    return JSONResponse(status_code=503, content={"detail": str(exc)})


@app.exception_handler(EslError)
async def esl_error_handler(request: Request, exc: EslError):
    return JSONResponse(
        status_code=502, content={"detail": f"FreeSWITCH command failed: {exc}"}
    )


for module in (
    auth,
    users,
    domains,
    sip_profiles,
    gateways,
    extensions,
    dialplans,
    network_config,
    cdr,
    recordings,
    calls,
    config_items,
    system,
):
    app.include_router(module.router, prefix="/api/v1")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
