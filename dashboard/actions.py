"""
Form actions for invoices.

Each action reads a submitted form by fixed keys, validates it against one of
the invoice schema projections, runs a single statement, revalidates the
cached invoices listing and tells the caller where to go next. Actions never
redirect themselves: they return an ActionResult and the HTTP layer performs
the redirect once the result has been logged.
"""
import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Mapping, Optional

from sqlalchemy.orm import Session

from dashboard import crud
from dashboard.cache import INVOICES_PATH, PageCache
from dashboard.exceptions import OperationDisabledError, PersistenceError
from dashboard.schemas import (
    CreateInvoiceSchema,
    DeleteInvoiceSchema,
    FormState,
    UpdateInvoiceSchema,
    parse,
    safe_parse,
)

logger = logging.getLogger(__name__)

MISSING_FIELDS_MESSAGE = "Missing Fields. Failed to Create Invoice."
CREATE_FAILED_MESSAGE = "Database Error: Failed to create invoice."
UPDATE_FAILED_MESSAGE = "Database Error: Failed to update invoice."
DELETE_FAILED_MESSAGE = "Database Error: Failed to delete invoice."
DELETE_DISABLED_MESSAGE = "Failed to Delete Invoice"


@dataclass
class ActionResult:
    """Outcome of a form action: state for the next render and an optional redirect."""
    state: FormState = field(default_factory=FormState)
    redirect_to: Optional[str] = None

    @property
    def failed(self) -> bool:
        return bool(self.state.errors or self.state.message)


def to_cents(amount: Decimal) -> int:
    return int((amount * 100).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def _fields(form: Mapping[str, Any], *keys: str) -> dict[str, Any]:
    return {key: form.get(key) for key in keys}


def create_invoice(db: Session, form: Mapping[str, Any], page_cache: PageCache) -> ActionResult:
    validated = safe_parse(CreateInvoiceSchema, _fields(form, "customerId", "amount", "status"))

    # If form validation fails, return errors early
    if not validated.success:
        logger.info(f"Create invoice rejected, invalid fields: {', '.join(validated.errors)}")
        return ActionResult(state=FormState(errors=validated.errors, message=MISSING_FIELDS_MESSAGE))

    data = validated.data
    amount_in_cents = to_cents(data.amount)
    today = date.today().isoformat()

    state = FormState()
    try:
        invoice_id = crud.insert_invoice(db, data.customer_id, amount_in_cents, data.status, today)
        logger.info(f"Invoice {invoice_id} created: customer={data.customer_id} amount={amount_in_cents} status={data.status.value}")
    except PersistenceError as e:
        logger.error(f"Create invoice failed: {e.__cause__ or e}")
        state = FormState(message=CREATE_FAILED_MESSAGE)

    # Listing is revalidated and the caller redirected whether or not the insert succeeded
    page_cache.revalidate_path(INVOICES_PATH)
    return ActionResult(state=state, redirect_to=INVOICES_PATH)


def update_invoice(db: Session, form: Mapping[str, Any], page_cache: PageCache) -> ActionResult:
    """Update an invoice; malformed input raises InvoiceValidationError."""
    data = parse(UpdateInvoiceSchema, _fields(form, "id", "customerId", "amount", "status"))
    amount_in_cents = to_cents(data.amount)

    state = FormState()
    try:
        matched = crud.update_invoice(db, data.id, data.customer_id, amount_in_cents, data.status)
        if not matched:
            logger.warning(f"Update matched no invoice: {data.id}")
        else:
            logger.info(f"Invoice {data.id} updated: customer={data.customer_id} amount={amount_in_cents} status={data.status.value}")
        page_cache.revalidate_path(INVOICES_PATH)
    except PersistenceError as e:
        logger.error(f"Update invoice {data.id} failed: {e.__cause__ or e}")
        state = FormState(message=UPDATE_FAILED_MESSAGE)

    return ActionResult(state=state, redirect_to=INVOICES_PATH)


def delete_invoice(db: Session, form: Mapping[str, Any], page_cache: PageCache, enabled: bool = False) -> ActionResult:
    """
    Delete an invoice.

    Disabled unless enabled is set: a disabled delete raises
    OperationDisabledError before reading the form or touching the database.
    """
    if not enabled:
        raise OperationDisabledError(DELETE_DISABLED_MESSAGE)

    data = parse(DeleteInvoiceSchema, _fields(form, "id"))

    state = FormState()
    try:
        deleted = crud.delete_invoice(db, data.id)
        logger.info(f"Invoice {data.id} deleted ({deleted} row(s))")
        page_cache.revalidate_path(INVOICES_PATH)
    except PersistenceError as e:
        logger.error(f"Delete invoice {data.id} failed: {e.__cause__ or e}")
        state = FormState(message=DELETE_FAILED_MESSAGE)

    return ActionResult(state=state, redirect_to=INVOICES_PATH)
