
from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from dashboard.exceptions import PersistenceError
from dashboard.models import Customer, Invoice, InvoiceStatus, new_id
from dashboard.schemas import CustomerField, InvoiceForm, InvoiceRow


def _execute(db: Session, statement, action: str):
    try:
        result = db.execute(statement)
        db.commit()
        return result
    # Drivers raise OverflowError/ValueError for values a column cannot bind
    except (SQLAlchemyError, OverflowError, ValueError) as e:
        db.rollback()
        raise PersistenceError(f"Failed to {action} invoice") from e


def insert_invoice(db: Session, customer_id: str, amount_in_cents: int, status: InvoiceStatus, date: str) -> str:
    invoice_id = new_id()
    _execute(
        db,
        insert(Invoice).values(
            id=invoice_id,
            customer_id=customer_id,
            amount=amount_in_cents,
            status=status,
            date=date,
        ),
        "create",
    )
    return invoice_id


def update_invoice(db: Session, invoice_id: str, customer_id: str, amount_in_cents: int, status: InvoiceStatus) -> int:
    """Rewrite customer, amount and status of one invoice; returns rows matched."""
    result = _execute(
        db,
        update(Invoice)
        .where(Invoice.id == invoice_id)
        .values(customer_id=customer_id, amount=amount_in_cents, status=status),
        "update",
    )
    return result.rowcount


def delete_invoice(db: Session, invoice_id: str) -> int:
    result = _execute(db, delete(Invoice).where(Invoice.id == invoice_id), "delete")
    return result.rowcount


def fetch_invoice_by_id(db: Session, invoice_id: str) -> InvoiceForm | None:
    try:
        inv = db.get(Invoice, invoice_id)
    except SQLAlchemyError as e:
        raise PersistenceError("Failed to fetch invoice") from e
    if inv is None:
        return None
    return InvoiceForm.model_validate(inv)


def fetch_customers(db: Session) -> list[CustomerField]:
    try:
        customers = db.scalars(select(Customer).order_by(Customer.name.asc())).all()
    except SQLAlchemyError as e:
        raise PersistenceError("Failed to fetch all customers") from e
    return [CustomerField.model_validate(c) for c in customers]


def fetch_invoices(db: Session) -> list[InvoiceRow]:
    """Invoices joined with their customer, newest first."""
    statement = (
        select(Invoice, Customer)
        .join(Customer, Invoice.customer_id == Customer.id)
        .order_by(Invoice.date.desc(), Customer.name.asc())
    )
    try:
        rows = db.execute(statement).all()
    except SQLAlchemyError as e:
        raise PersistenceError("Failed to fetch invoices") from e
    return [
        InvoiceRow(
            id=inv.id,
            customer_id=customer.id,
            name=customer.name,
            email=customer.email,
            amount=inv.amount,
            status=inv.status,
            date=inv.date,
        )
        for inv, customer in rows
    ]


def count_customers(db: Session) -> int:
    return db.scalar(select(func.count()).select_from(Customer))
