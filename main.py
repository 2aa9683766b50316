from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, HTTPException
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from portal.api.admin_routes import router as admin_router
from portal.api.audit_routes import router as audit_router
from portal.api.auth_routes import router as auth_router
from portal.api.service_application_routes import router as service_application_router
from portal.core.config import settings
from portal.core.errors import PortalError
from portal.database.connection import init_db
from portal.services.auth_service import auth_service

logger = logging.getLogger("portal.errors")

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    # Preflight responses are left to CORSMiddleware
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        if request.method != "OPTIONS":
            response.headers.update(SECURITY_HEADERS)
        return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    await auth_service.ensure_default_admin()
    yield


app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Service applications, payment confirmation and admin notifications",
    version="1.0.0",
    lifespan=lifespan,
)


def error_response(status_code: int, code: str, message: str, headers=None, **extra) -> JSONResponse:
    body = {"code": code, "message": message, "status_code": status_code, **extra}
    return JSONResponse(status_code=status_code, content={"error": body}, headers=headers)


@app.exception_handler(PortalError)
async def portal_exception_handler(request: Request, exc: PortalError):
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.to_dict()})


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    logger.warning(f"{exc.status_code} on {request.method} {request.url.path}: {exc.detail}")
    return error_response(exc.status_code, "http_error", str(exc.detail or exc.status_code),
                          headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Malformed request body on {request.url.path}: {exc.errors()}")
    return error_response(422, "validation_error", "Request validation failed",
                          details=jsonable_encoder(exc.errors()))


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return error_response(500, "internal_server_error", "An unexpected error occurred")


# CLIENT_URL may list several origins separated by commas
allowed_origins = [o.strip() for o in (settings.CLIENT_URL or "").split(",") if o.strip()]

# Added last so it sees preflight requests first
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "Accept"],
    max_age=3600,
)

app.include_router(auth_router)
app.include_router(service_application_router)
app.include_router(admin_router)
app.include_router(audit_router)


@app.get("/")
async def root():
    return {"message": "Service application portal API is running!"}


@app.get("/health")
async def health_check():
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
