from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.v1.router import router as v1_router
from app.core.config import settings
from app.core.exceptions.handlers import register_exception_handlers
from app.core.lifespan import lifespan
from app.core.logging import setup_early_logging
from app.core.middlewares import LogRequestsMiddleware
from app.core.responses import send_success

# Setup early logging for startup errors
setup_early_logging()

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.PROJECT_VERSION,
    debug=settings.DEBUG,
    lifespan=lifespan,
    openapi_tags=[
        {"name": "records", "description": "Expiring record store administration"},
    ],
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add logging middleware
app.add_middleware(LogRequestsMiddleware)

# Register all exception handlers
register_exception_handlers(app)

# Include API routers
app.include_router(v1_router)


@app.get("/health")
async def health_check():
    return send_success(
        message="OK", data={"status": "healthy", "version": settings.PROJECT_VERSION}
    ).model_dump()
