"""
FastAPI application for the FormFlow questionnaire engine.

Start with:
    uvicorn api.app:app --reload
"""

from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from formflow.config import config_from_env
from formflow.logger import FormLogger
from api.routes import router

load_dotenv()

VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage the request logger across app lifetime."""
    cfg = config_from_env()
    logger = FormLogger(log_dir=cfg.log_dir, slug=cfg.log_slug, version="01", silent=cfg.silent)
    app.state.logger = logger
    logger.log(f"=== FormFlow API v{VERSION} starting ===")
    logger.log(f"CORS origins: {', '.join(cfg.cors_origins)}")

    yield

    logger.log(f"=== Shutting down (uptime {logger.elapsed_seconds:.1f}s) ===")
    logger.close()


app = FastAPI(
    title="FormFlow API",
    version=VERSION,
    lifespan=lifespan,
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=config_from_env().cors_origins,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)
app.include_router(router)
