# app/main.py
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from concurrent.futures import ThreadPoolExecutor
import logging
import os

from app.config.settings import settings
from app.delivery.api.template_editor import router
from app.domain.template_service import TemplateService

logger = logging.getLogger("uvicorn.error")

@asynccontextmanager
async def lifespan(app: FastAPI):
    max_workers = min(4, os.cpu_count() or 1)
    app.state.executor = ThreadPoolExecutor(max_workers=max_workers)
    app.state.template_service = TemplateService()
    logger.info(f"'{settings.PROJECT_NAME}' started (mode: {settings.ENVIRONMENT}).")
    logger.info(f"Render ThreadPoolExecutor created with {max_workers} workers.")
    yield
    logger.info("Shutting down ThreadPoolExecutor...")
    app.state.executor.shutdown(wait=True)
    logger.info(f"'{settings.PROJECT_NAME}' stopped.")

app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Design ID-card templates over a background image, fill them with text and a photo, and export the flattened card.",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.ENVIRONMENT != "production" else None,
    redoc_url="/redoc" if settings.ENVIRONMENT != "production" else None,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_HOSTS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router, prefix=settings.API_V1_STR)

@app.get("/")
async def root():
    return {"message": settings.PROJECT_NAME, "version": "1.0.0", "status": "ok"}

@app.get("/health")
async def health_check(request: Request):
    service = getattr(request.app.state, "template_service", None)
    return {
        "status": "ok",
        "service": settings.PROJECT_NAME,
        "background_loaded": service is not None and service.background_size() is not None,
    }
