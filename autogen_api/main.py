from contextlib import asynccontextmanager
from fastapi import FastAPI, Depends, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
import uuid
import logging
import time

from autogen_api.config import settings
from autogen_api.dependencies import get_autogen_service
from autogen_api.errors import RequestParseError
from autogen_api.schemas.autogen_schemas import BustAllResponse, ErrorResponse, HealthResponse
from autogen_api.services.autogen_service import AutogenService, BustScope, GenerationResult
from autogen_api.utils.logging_config import setup_logging, get_logger

# Setup logging
logger = setup_logging(
    log_level=logging.DEBUG if settings.DEBUG else logging.INFO,
    log_to_file=settings.LOG_TO_FILE,
    log_dir=settings.LOG_DIR
)

@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    get_autogen_service().close()

# Create the FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    description="Composites design graphics onto product template photos with per-product placement",
    version="4.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add request logging middleware
@app.middleware("http")
async def log_requests(request: Request, call_next):
    request_id = str(uuid.uuid4())
    logger.info(f"Request {request_id} started: {request.method} {request.url.path}")
    
    start_time = time.time()
    try:
        response = await call_next(request)
        process_time = time.time() - start_time
        logger.info(f"Request {request_id} completed: {response.status_code} in {process_time:.4f}s")
        return response
    except Exception as e:
        process_time = time.time() - start_time
        logger.error(f"Request {request_id} failed after {process_time:.4f}s: {str(e)}")
        return JSONResponse(
            status_code=500,
            content={"detail": f"Internal server error: {str(e)}"}
        )

@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": f"Internal server error: {str(exc)}"}
    )

def _image_response(result: GenerationResult) -> Response:
    return Response(
        content=result.content,
        media_type=result.media_type,
        headers={"X-Autogen-Cache": result.status.value}
    )

@app.get("/", response_model=HealthResponse)
async def root():
    """Health check endpoint"""
    logger.debug("Health check endpoint called")
    return {"status": "ok", "message": "Mockup autogen API v4.0 - per-product repositioning at render time"}

@app.get("/autogen/{file}")
async def autogen(file: str, autogen_service: AutogenService = Depends(get_autogen_service)):
    """
    Serve the mockup for ``<template>-<designNumber>.<ext>``.
    
    Always answers with an image: the cached composite, a fresh one, or the
    fallback placeholder when generation fails or times out.
    """
    result = await autogen_service.generate(file)
    return _image_response(result)

@app.get("/bust/{file}")
async def bust(file: str, autogen_service: AutogenService = Depends(get_autogen_service)):
    """Drop the cached composite and design files for one mockup, then regenerate it"""
    req_logger = get_logger(__name__)
    report, result = await autogen_service.bust_and_regenerate(file)
    if report is not None:
        req_logger.info(f"[bust] {file}: cleared {len(report.cleared_design_files)} design files, "
                        f"{len(report.cleared_output_files)} outputs")
    return _image_response(result)

@app.get(
    "/bust-all/{design_number}",
    response_model=BustAllResponse,
    responses={400: {"model": ErrorResponse}}
)
async def bust_all(design_number: str, autogen_service: AutogenService = Depends(get_autogen_service)):
    """Drop every cached artifact of a design number across all products"""
    req_logger = get_logger(__name__)
    try:
        report = await autogen_service.bust(design_number, BustScope.ALL_TEMPLATES)
    except RequestParseError as e:
        req_logger.warning(f"Validation error: {e.message}")
        raise HTTPException(status_code=400, detail=e.message)
    
    return {
        "success": report.success,
        "design_number": design_number,
        "cleared_design_files": len(report.cleared_design_files),
        "cleared_output_files": len(report.cleared_output_files),
        "failed_deletions": report.failed_deletions,
        "message": (f"Cache cleared. Next request for any product with design {design_number} "
                    f"will regenerate with current positioning.")
    }
