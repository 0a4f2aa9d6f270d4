import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .core.logging_config import configure_logging
from .exceptions import PriceGuideError
from .routers import categories

configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Price Guide API",
    description="Backend API for managing price guide category trees",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(categories.router)


@app.exception_handler(PriceGuideError)
async def price_guide_error_handler(request: Request, exc: PriceGuideError) -> JSONResponse:
    """Typed service errors become ``{"error", "message", ...details}`` bodies"""
    if exc.status_code >= 500:
        logger.error(f"{exc.error} on {request.method} {request.url.path}: {exc.message} {exc.details}")
    else:
        logger.info(f"{exc.error} on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.get("/health")
async def health_check():
    return {"status": "healthy", "message": "Price Guide API is running"}


@app.get("/")
async def root():
    return {"message": "Welcome to Price Guide API"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("priceguide.main:app", host="0.0.0.0", port=8000, reload=True)
