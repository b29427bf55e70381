"""
Application lifespan management.
"""
from contextlib import asynccontextmanager
from fastapi import FastAPI
import logging

from .dependencies import container

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Connects the container at startup; drains chat turns and disconnects at shutdown."""
    logger.info("Starting VibeNote API...")
    await container.initialize()
    logger.info("VibeNote API started successfully")

    yield

    logger.info("Shutting down VibeNote API...")
    await container.shutdown()
    logger.info("VibeNote API shutdown complete")
