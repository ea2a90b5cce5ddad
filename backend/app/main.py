from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import settings
from app.routers import invoice_reminders, invoices

OPENAPI_TAGS = [
    {"name": "Invoices", "description": "Read invoices, split-payment figures and reminder state."},
    {"name": "Reminders", "description": "Preview, dispatch and audit invoice payment reminders."},
]

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.version,
    description=(
        "Invoice billing and payment reminder engine for a travel agency back office. "
        "Classifies outstanding trip invoices, sends reminders and keeps an audit trail."
    ),
    openapi_tags=OPENAPI_TAGS,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Total-Count"],
)

# Registered before the invoices router so /reminders/* is never read as an invoice id
app.include_router(
    invoice_reminders.router,
    prefix="/v1/invoices/reminders",
    tags=["Reminders"],
)
app.include_router(invoices.router, prefix="/v1/invoices", tags=["Invoices"])


@app.get("/")
async def root() -> dict[str, str]:
    return {
        "app": settings.APP_NAME,
        "version": settings.version,
        "domain": settings.APP_DOMAIN,
        "status": "running",
    }
