from fastapi import FastAPI, Depends, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy import text
from sqlalchemy.orm import Session
import os
import logging

from dashboard.db import Base, engine, get_db, SessionLocal
from dashboard import actions, pages
from dashboard.actions import ActionResult
from dashboard.cache import INVOICES_PATH, PageCache, get_page_cache
from dashboard.config import Settings, settings
from dashboard.exceptions import InvoiceNotFoundError, InvoiceValidationError
from dashboard.seed import seed_demo_data
from dashboard.templating import TemplateLoader, get_templates

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Configure FastAPI based on demo mode
if settings.demo_mode:
    app = FastAPI(title="Invoice Dashboard Demo", docs_url=None, redoc_url=None)
else:
    app = FastAPI(title="Invoice Dashboard")


def get_settings() -> Settings:
    return settings


# Startup self-checks and schema creation
@app.on_event("startup")
async def startup_checks():
    """Perform startup validation and logging."""
    logger.info("=" * 60)
    logger.info("Invoice Dashboard - Startup Checks")
    logger.info("=" * 60)

    # Log database configuration
    logger.info(f"Database dialect: {engine.dialect.name}")
    logger.info(f"Database URL: {settings.redacted_database_url()}")

    # Log demo mode status
    logger.info(f"Demo mode: {settings.demo_mode}")
    if settings.demo_mode:
        logger.info("  - Swagger UI: DISABLED")
        logger.info("  - Placeholder data: SEEDED when empty")
    else:
        logger.info("  - Swagger UI: ENABLED at /docs")
    logger.info(f"Delete invoice action: {'ENABLED' if settings.invoice_delete_enabled else 'DISABLED'}")

    # Log cache configuration
    cache_abs = os.path.abspath(settings.cache_dir)
    logger.info(f"Page cache directory: {cache_abs} (ttl={settings.cache_ttl_seconds}s)")
    try:
        os.makedirs(settings.cache_dir, exist_ok=True)
        logger.info(f"  - Directory exists/created: OK")
    except OSError as e:
        logger.warning(f"  - Directory creation failed (non-fatal): {e}")

    # Create schema (fast operation)
    try:
        logger.info("Creating database schema...")
        Base.metadata.create_all(bind=engine)
        logger.info("  - Schema creation: SUCCESS")
    except Exception as e:
        logger.error(f"  - Schema creation failed: {e}")
        # Don't block startup - health check will catch this

    if settings.demo_mode:
        db = SessionLocal()
        try:
            seed_demo_data(db)
        except Exception as e:
            logger.error(f"  - Demo seed failed: {e}")
        finally:
            db.close()

    logger.info("=" * 60)
    logger.info("Startup checks complete. Application ready.")
    logger.info("=" * 60)


# Error boundaries
@app.exception_handler(InvoiceNotFoundError)
async def invoice_not_found(request: Request, exc: InvoiceNotFoundError):
    logger.info(f"Not found: {exc.invoice_id}")
    return HTMLResponse(get_templates().render("not-found.html"), status_code=404)


@app.exception_handler(InvoiceValidationError)
async def invalid_invoice(request: Request, exc: InvoiceValidationError):
    logger.warning(f"Rejected {request.method} {request.url.path}: {exc.field_errors}")
    html = get_templates().render("error.html", message=exc.message, field_errors=exc.field_errors)
    return HTMLResponse(html, status_code=400)


# Health check endpoint (required for cloud platforms)
@app.get("/health")
async def health_check():
    """
    Health check endpoint for cloud platform monitoring.
    This endpoint must respond quickly to prevent deployment timeouts.
    """
    try:
        # Quick database connectivity check
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        db_status = "connected"
    except Exception as e:
        logger.warning(f"Health check: database connection failed: {e}")
        db_status = "disconnected"

    return {
        "status": "healthy",
        "service": "invoice-dashboard",
        "database": db_status,
        "demo_mode": settings.demo_mode
    }


def _redirect(result: ActionResult) -> RedirectResponse:
    if result.failed:
        logger.warning(f"{result.state.message} Redirecting to {result.redirect_to}")
    return RedirectResponse(result.redirect_to, status_code=303)


@app.get("/")
async def index():
    return RedirectResponse(INVOICES_PATH, status_code=307)


@app.get(INVOICES_PATH, response_class=HTMLResponse)
def list_invoices(
    db: Session = Depends(get_db),
    templates: TemplateLoader = Depends(get_templates),
    page_cache: PageCache = Depends(get_page_cache),
):
    return pages.invoices_page(db, templates, page_cache)


@app.get(INVOICES_PATH + "/create", response_class=HTMLResponse)
def create_invoice_form(
    db: Session = Depends(get_db),
    templates: TemplateLoader = Depends(get_templates),
):
    return pages.render_create_page(templates, pages.create_invoice_page(db))


@app.post(INVOICES_PATH + "/create")
async def create_invoice(
    request: Request,
    db: Session = Depends(get_db),
    templates: TemplateLoader = Depends(get_templates),
    page_cache: PageCache = Depends(get_page_cache),
):
    form = await request.form()
    result = actions.create_invoice(db, form, page_cache)
    if result.redirect_to:
        return _redirect(result)

    # Re-render the form with the submitted values and field errors
    html = pages.render_create_page(templates, pages.create_invoice_page(db), result.state, values=dict(form))
    return HTMLResponse(html, status_code=422)


@app.get(INVOICES_PATH + "/{invoice_id}/edit", response_class=HTMLResponse)
def edit_invoice_form(
    invoice_id: str,
    db: Session = Depends(get_db),
    templates: TemplateLoader = Depends(get_templates),
):
    page = pages.edit_invoice_page(db, invoice_id)
    return pages.render_edit_page(templates, page)


@app.post(INVOICES_PATH + "/{invoice_id}/edit")
async def update_invoice(
    invoice_id: str,
    request: Request,
    db: Session = Depends(get_db),
    page_cache: PageCache = Depends(get_page_cache),
):
    form = dict(await request.form())
    form.setdefault("id", invoice_id)
    return _redirect(actions.update_invoice(db, form, page_cache))


@app.post(INVOICES_PATH + "/{invoice_id}/delete")
async def delete_invoice(
    invoice_id: str,
    request: Request,
    db: Session = Depends(get_db),
    page_cache: PageCache = Depends(get_page_cache),
    config: Settings = Depends(get_settings),
):
    form = dict(await request.form())
    form.setdefault("id", invoice_id)
    result = actions.delete_invoice(db, form, page_cache, enabled=config.invoice_delete_enabled)
    return _redirect(result)


# Create tables on module load (fallback if startup event doesn't fire)
try:
    Base.metadata.create_all(bind=engine)
except Exception as e:
    logger.warning(f"Schema creation on module load failed (may be expected): {e}")


def main() -> None:
    """Run the dashboard with uvicorn."""
    import uvicorn

    uvicorn.run("dashboard.main:app", host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    main()
