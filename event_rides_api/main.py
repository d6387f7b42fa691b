import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .core.config import settings
from .core.logging_config import setup_logging
from .routers import event_rides

setup_logging(settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.project_name,
    version=settings.api_version,
    description="Pairs drivers and passengers attending the same event",
    docs_url="/docs",
    redoc_url="/redoc",
)

# Configure CORS for docs UI
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, specify exact origins
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Unparseable input is a plain 400, the same as a non-positive ID"""
    errors = exc.errors()
    logger.info("Rejected %s %s: %s", request.method, request.url.path, errors)
    if any(tuple(error.get("loc", ()))[:1] == ("body",) for error in errors):
        detail = event_rides.INVALID_RIDE_MESSAGE
    else:
        detail = "Invalid request."
    return JSONResponse(status_code=400, content={"detail": detail})


app.include_router(event_rides.router)


@app.get("/")
def read_root():
    return {"message": settings.project_name, "status": "running"}
