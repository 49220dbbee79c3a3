from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ratemyfit.config import logger
from ratemyfit.core import storage_ops
from ratemyfit.services.session_registry import session_registry

from .routers import router
from .routers.analysis.dependencies import SESSION_HEADER


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Run one-time storage setup; stop every session's poller on shutdown."""
    bucket_ready = await storage_ops.ensure_outfit_images_bucket()
    if not bucket_ready:
        logger.warning("Outfit image bucket is not available; saving may fail")

    yield

    await session_registry.close_all()
    logger.info("All analysis sessions closed")


# Initialize FastAPI application
app = FastAPI(
    title="RateMyFit API",
    description="AI-powered outfit rating with a personal wardrobe",
    version="1.0.0",
    lifespan=lifespan,
)

app.include_router(router)


# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=[SESSION_HEADER],
)


logger.info("RateMyFit API initialized successfully")
