from contextlib import asynccontextmanager
from fastapi import FastAPI
from app.db.session import close_db, init_db
from app.utils.logging import get_logger


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    await init_db()
    logger = get_logger().bind(startup=True)
    logger.info(f"Startup: {app.title} v{app.version} starting...")
    yield
    # Shutdown
    await close_db()
    logger.info("Shutdown: App shutting down...")
