"""
FastAPI application for the generative studio.

Features:
- Chat forwarding to Gemini (or OpenAI) with streaming or one-shot replies
- Companion persona chat with an illustrated reply
- Image generation across OpenAI, Gemini, HuggingFace and Pollinations with
  model fallback and parallel fan-out
"""
import time

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import Config
from chat.routes import router as chat_router
from image.routes import router as image_router
from common.error_messages import ErrorCode, ServiceError, get_error_response
from utils.logger import get_logger
from utils.masking import mask_sensitive_data

# Initialize logger
logger = get_logger("main")

MAX_LOGGED_BODY = 2000

for warning in Config.validate():
    logger.warning(warning)
logger.info(f"Configured providers: {', '.join(Config.credentials().configured()) or 'none (free gateway only)'}")

app = FastAPI(
    title="Generative Studio API",
    description="Chat, companion and multi-provider image generation endpoints.",
    version="1.0.0"
)

# CORS middleware - added first so it also covers error responses
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    """Render service failures as the uniform error envelope."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected: {exc}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Malformed request bodies are client errors, reported in the same envelope."""
    message, status_code = get_error_response(ErrorCode.INVALID_PARAMETER)
    details = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg')}" for err in exc.errors()
    )
    return JSONResponse(status_code=status_code, content={"error": message, "details": details})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle all unhandled exceptions globally."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    message, status_code = get_error_response(ErrorCode.UNKNOWN_ERROR)
    return JSONResponse(status_code=status_code, content={"error": message, "details": str(exc)})


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all HTTP requests with timing and a masked, truncated request body."""
    start_time = time.time()

    request_body = None
    if request.method in ["POST", "PUT", "PATCH"]:
        body_bytes = await request.body()
        if body_bytes:
            request_body = mask_sensitive_data(body_bytes.decode("utf-8", errors="replace"))
            if len(request_body) > MAX_LOGGED_BODY:
                request_body = request_body[:MAX_LOGGED_BODY] + "... [truncated]"

    log_msg = f"→ {request.method} {request.url.path} - Client: {request.client.host if request.client else 'unknown'}"
    if request_body:
        log_msg += f"\n  Request Body: {request_body}"
    logger.info(log_msg)

    response = await call_next(request)

    process_time = (time.time() - start_time) * 1000
    logger.info(f"← {request.method} {request.url.path} - Status: {response.status_code} - Time: {process_time:.2f}ms")
    return response


app.include_router(chat_router)
app.include_router(image_router)
logger.info("Chat and image routers included")


@app.get("/healthz")
def health():
    """Health check endpoint."""
    return {"status": "ok", "providers": Config.credentials().configured()}


# Run server directly
if __name__ == "__main__":
    logger.info(f"Starting server on {Config.HOST}:{Config.PORT}")
    uvicorn.run(
        "app:app",
        host=Config.HOST,
        port=Config.PORT,
        reload=True,
        log_level="info"
    )
