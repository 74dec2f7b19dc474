"""
Exceptions raised by the invoice dashboard.

Validation and persistence faults are handled at the action boundary.
Not-found and validation faults reaching the HTTP layer are rendered by the
error boundaries in dashboard.main; OperationDisabledError has no handler.
"""


class DashboardError(Exception):
    """Base class for dashboard exceptions."""
    pass


class InvoiceValidationError(DashboardError):
    """Submitted form fields failed validation."""

    def __init__(self, field_errors: dict[str, list[str]], message: str = "Invalid invoice fields."):
        super().__init__(message)
        self.message = message
        self.field_errors = field_errors


class PersistenceError(DashboardError):
    """A statement against the database failed."""
    pass


class InvoiceNotFoundError(DashboardError):
    def __init__(self, invoice_id: str):
        super().__init__(f"Invoice not found: {invoice_id}")
        self.invoice_id = invoice_id


class OperationDisabledError(DashboardError):
    """The requested operation is switched off and always fails."""
    pass
