from contextlib import asynccontextmanager
import logging
import os

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import uvicorn

from database import create_db_and_tables
from routes.auth_routes import auth_router
from routes.directline_routes import directline_router
from services.directline_service import DIRECT_LINE_SECRET
from services.errors import AuthError
from services.tokens_service import SECRET_KEY
from utils.email_utils import verify_smtp_connection

load_dotenv()

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO"),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

FRONTEND_ORIGIN = os.getenv("FRONTEND_ORIGIN")

# first failing body field -> error code, per route
VALIDATION_CODES = {
    "/auth/signup": {"name": "REQUIRED_NAME", "email": "REQUIRED_EMAIL", "password": "PASSWORD_TOO_SHORT"},
    "/auth/login": {"identifier": "REQUIRED_EMAIL", "password": "PASSWORD_TOO_SHORT"},
    "/auth/resend": {"email": "REQUIRED_EMAIL"},
}


def validation_code(path: str, errors: list[dict]) -> str:
    if not errors:
        return "INVALID_INPUT"
    loc = errors[0].get("loc", ())
    field = loc[1] if len(loc) > 1 and loc[0] == "body" else None
    return VALIDATION_CODES.get(path, {}).get(field, "INVALID_INPUT")


def auth_error_handler(_request: Request, exc: AuthError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"ok": False, "code": exc.code})


def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    code = validation_code(request.url.path, exc.errors())
    if request.url.path == "/auth/verify-email-otp":
        return JSONResponse(status_code=400, content={"ok": False, "error": code})
    return JSONResponse(status_code=400, content={"ok": False, "code": code})


def internal_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception on %s", request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"ok": False, "code": "INTERNAL_ERROR"})


@asynccontextmanager
async def lifespan(_app: FastAPI):
    create_db_and_tables()
    if not SECRET_KEY:
        logger.warning("SECRET_KEY is not configured, login will fail until it is set")
    if not DIRECT_LINE_SECRET:
        logger.warning("DIRECT_LINE_SECRET is not configured, chat token exchange is disabled")
    verify_smtp_connection()
    yield


def create_app() -> FastAPI:
    app = FastAPI(title="Member Auth API", lifespan=lifespan)

    if FRONTEND_ORIGIN:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=[FRONTEND_ORIGIN],
            allow_credentials=False,
            allow_methods=["GET", "POST", "OPTIONS"],
            allow_headers=["*"],
        )

    app.add_exception_handler(AuthError, auth_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, internal_error_handler)

    app.include_router(auth_router)
    app.include_router(directline_router)

    @app.get("/health")
    def health():
        return {"ok": True}

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run("main:app", host="127.0.0.1", port=int(os.getenv("PORT", "4000")), reload=True)
