"""
Page composition for the invoices dashboard.

Builders fetch what a page needs and return a view model; render functions
turn view models into HTML. Builders raise InvoiceNotFoundError before any
rendering happens.
"""
from dataclasses import dataclass, field
from typing import Optional

from sqlalchemy.orm import Session

from dashboard import crud
from dashboard.cache import INVOICES_PATH, PageCache
from dashboard.exceptions import InvoiceNotFoundError
from dashboard.schemas import CustomerField, FormState, InvoiceForm
from dashboard.templating import TemplateLoader


@dataclass
class Breadcrumb:
    label: str
    href: str
    active: bool = False


@dataclass
class EditInvoicePage:
    invoice: InvoiceForm
    customers: list[CustomerField]
    breadcrumbs: list[Breadcrumb] = field(default_factory=list)


@dataclass
class CreateInvoicePage:
    customers: list[CustomerField]
    breadcrumbs: list[Breadcrumb] = field(default_factory=list)


def edit_invoice_path(invoice_id: str) -> str:
    return f"{INVOICES_PATH}/{invoice_id}/edit"


def edit_invoice_page(db: Session, invoice_id: str) -> EditInvoicePage:
    invoice = crud.fetch_invoice_by_id(db, invoice_id)
    customers = crud.fetch_customers(db)

    if invoice is None:
        raise InvoiceNotFoundError(invoice_id)

    return EditInvoicePage(
        invoice=invoice,
        customers=customers,
        breadcrumbs=[
            Breadcrumb(label="Invoices", href=INVOICES_PATH),
            Breadcrumb(label="Edit Invoice", href=edit_invoice_path(invoice_id), active=True),
        ],
    )


def create_invoice_page(db: Session) -> CreateInvoicePage:
    return CreateInvoicePage(
        customers=crud.fetch_customers(db),
        breadcrumbs=[
            Breadcrumb(label="Invoices", href=INVOICES_PATH),
            Breadcrumb(label="Create Invoice", href=f"{INVOICES_PATH}/create", active=True),
        ],
    )


def render_edit_page(templates: TemplateLoader, page: EditInvoicePage, state: Optional[FormState] = None) -> str:
    return templates.render(
        "invoices/edit.html",
        invoice=page.invoice,
        customers=page.customers,
        breadcrumbs=page.breadcrumbs,
        state=state or FormState(),
    )


def render_create_page(templates: TemplateLoader, page: CreateInvoicePage, state: Optional[FormState] = None,
                       values: Optional[dict] = None) -> str:
    return templates.render(
        "invoices/create.html",
        customers=page.customers,
        breadcrumbs=page.breadcrumbs,
        state=state or FormState(),
        values=values or {},
    )


def invoices_page(db: Session, templates: TemplateLoader, page_cache: PageCache) -> str:
    """Invoices listing, served from the page cache until revalidated."""
    return page_cache.get_or_render(
        INVOICES_PATH,
        lambda: templates.render("invoices/list.html", invoices=crud.fetch_invoices(db)),
    )
