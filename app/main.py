"""
FastAPI app

- CORS configured for the clinic's web front end
- Single router for all endpoints under /api
- Every failure is rendered as {"success": false, "error": <message>}
- Basic health check
"""
import logging
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables from .env file before config is imported
project_root = Path(__file__).parent.parent
load_dotenv(dotenv_path=project_root / '.env')

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api import router
from app.api.middleware import TimingMiddleware
from app.core.config import CORS_ORIGINS, LOG_LEVEL
from app.core.errors import ClinicError

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Addiction clinic backend")

# Logs request duration for all requests
app.add_middleware(TimingMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,  # Uses CORS_ORIGINS from config (env var)
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition"],
)

app.include_router(router, prefix="/api")


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


@app.exception_handler(ClinicError)
async def clinic_error_handler(request: Request, exc: ClinicError):
    return error_response(exc.status_code, exc.message)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        messages.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return error_response(400, "\n".join(messages))


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return error_response(500, str(exc))


@app.get("/")
async def root():
    """
    Basic health check
    """
    return {"status": "ok"}
