# app/main.py
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.activity.routes import router as dashboard_router
from app.approval.routes import router as approval_router
from app.auth.routes import router as auth_router
from app.core.config import get_settings
from app.core.errors import PortalError, StorageFailure
from app.core.logging import configure_logging
from app.invoice.routes import router as invoice_router
from app.organization.routes import router as organization_router
from app.ticket.routes import router as ticket_router
from app.user.routes import router as user_router

settings = get_settings()
configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.APP_NAME,
    description=settings.APP_DESC,
    version=settings.APP_VERSION,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(PortalError)
async def portal_error_handler(request: Request, exc: PortalError):
    if isinstance(exc, StorageFailure):
        logger.error("storage failure on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


# Routers
app.include_router(auth_router)
app.include_router(user_router)
app.include_router(organization_router)
app.include_router(ticket_router)
app.include_router(approval_router)
app.include_router(invoice_router)
app.include_router(dashboard_router)


@app.get("/api/health", tags=["Health"])
def health():
    return {"status": "ok"}
