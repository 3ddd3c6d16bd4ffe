from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager
from clearcare.config import settings
from clearcare.database import Database
from clearcare.features.auth.router import router as auth_router
from clearcare.features.patients.router import router as patients_router
from clearcare.features.instructions.router import router as instructions_router
from clearcare.features.compliance.router import router as compliance_router
from clearcare.features.providers.router import router as providers_router
from clearcare.features.admin.router import router as admin_router
from clearcare.features.audit.middleware import audit_requests
from clearcare.shared.schemas import DataResponse, ErrorResponse
from clearcare.core.logging import logger


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan events for FastAPI application."""
    # Startup
    logger.info("Starting ClearCare+ API...")
    await Database.connect_db()
    logger.info("Application started successfully")

    yield

    # Shutdown
    logger.info("Shutting down...")
    await Database.close_db()
    logger.info("Application shutdown complete")


# Create FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    description="ClearCare+ care instructions and compliance tracking API",
    version="1.0.0",
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Audit authenticated API calls
app.middleware("http")(audit_requests)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Render raised HTTP errors in the standard error envelope."""
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(message=message).model_dump(),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = f"{location}: {first.get('msg')}" if location else str(first.get("msg", "Invalid request"))
    return JSONResponse(
        status_code=422,
        content=ErrorResponse(
            message=message,
            detail={"errors": [{"loc": list(e.get("loc", ())), "msg": e.get("msg")} for e in errors]},
        ).model_dump(),
    )


# Register routers
app.include_router(auth_router, prefix=settings.API_V1_PREFIX)
app.include_router(patients_router, prefix=settings.API_V1_PREFIX)
app.include_router(instructions_router, prefix=settings.API_V1_PREFIX)
app.include_router(compliance_router, prefix=settings.API_V1_PREFIX)
app.include_router(providers_router, prefix=settings.API_V1_PREFIX)
app.include_router(admin_router, prefix=settings.API_V1_PREFIX)


@app.get("/", response_model=DataResponse[dict])
async def root():
    """Root endpoint."""
    return DataResponse(
        message="Welcome to ClearCare+ API",
        data={"version": "1.0.0", "docs": "/docs"},
    )


@app.get("/health", response_model=DataResponse[dict])
async def health_check():
    """Health check endpoint."""
    return DataResponse(data={"status": "healthy", "environment": settings.ENVIRONMENT})
