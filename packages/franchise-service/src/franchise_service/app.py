"""
Application factory and FastAPI app configuration.
"""

import json
import logging
import os
import time

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from franchise_service.api.router import get_store
from franchise_service.api.router import router as api_router
from franchise_service.config import LOG_FORMAT, LOG_LEVEL, SEED_BRANDS_DIR
from franchise_service.stores.base import BaseStore

logging.basicConfig(level=getattr(logging, LOG_LEVEL, logging.INFO), format=LOG_FORMAT)
logger = logging.getLogger("franchise_service")


def seed_brands(store: BaseStore, directory: str) -> int:
    """
    Load every ``*.json`` brand file in ``directory`` into ``store``.

    The file name (without extension) is used as the brand id when the file
    has no ``id``. Returns the number of brands loaded.
    """
    if not directory or not os.path.isdir(directory):
        return 0

    count = 0
    for filename in sorted(os.listdir(directory)):
        if not filename.endswith(".json"):
            continue
        with open(os.path.join(directory, filename), "r", encoding="utf-8") as f:
            brand = json.load(f)
        brand.setdefault("id", os.path.splitext(filename)[0])
        store.save_brand(brand)
        count += 1

    logger.info(f"Seeded {count} brand(s) from {directory}")
    return count


def create_app(seed_dir: str = SEED_BRANDS_DIR) -> FastAPI:
    """Create and configure the FastAPI application."""
    application = FastAPI(
        title="Franchise Projection API",
        version="0.1.0",
        description="Five-year franchise P&L, balance sheet, cash flow and ROI projections",
    )

    application.include_router(api_router)
    seed_brands(get_store(), seed_dir)

    @application.middleware("http")
    async def log_requests(request: Request, call_next):
        logger.info(f"Incoming request: {request.method} {request.url.path}")
        start_time = time.time()
        try:
            response = await call_next(request)
            elapsed_ms = (time.time() - start_time) * 1000
            logger.info(
                f"Request completed: {request.method} {request.url.path} "
                f"Status: {response.status_code} Time: {elapsed_ms:.1f}ms"
            )
            return response
        except Exception as e:
            logger.error(f"Request failed: {request.method} {request.url.path} Error: {str(e)}")
            return JSONResponse(
                status_code=500,
                content={"error": {"message": "Internal Server Error", "code": "INTERNAL_ERROR"}},
            )

    @application.get("/")
    def read_root():
        return {"message": "Franchise Projection API is running"}

    return application


# Module-level app instance for uvicorn
app = create_app()
