import enum
import uuid
from sqlalchemy import BigInteger, String, Enum, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship
from dashboard.db import Base


def new_id() -> str:
    # UUID stored as string for portability
    return str(uuid.uuid4())


class InvoiceStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"


class Customer(Base):
    __tablename__ = "customers"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(255), index=True)
    email: Mapped[str] = mapped_column(String(255))
    image_url: Mapped[str] = mapped_column(String(500), default="")

    invoices: Mapped[list["Invoice"]] = relationship(back_populates="customer")


class Invoice(Base):
    __tablename__ = "invoices"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    customer_id: Mapped[str] = mapped_column(String(36), ForeignKey("customers.id"), index=True)

    # Integer cents, 64-bit
    amount: Mapped[int] = mapped_column(BigInteger)

    # Persist the value text ("pending"/"paid"), not the member name
    status: Mapped[InvoiceStatus] = mapped_column(
        Enum(
            InvoiceStatus,
            name="invoice_status",
            native_enum=False,
            length=16,
            values_callable=lambda statuses: [s.value for s in statuses],
        ),
        default=InvoiceStatus.PENDING,
        index=True,
    )

    # ISO calendar date, YYYY-MM-DD
    date: Mapped[str] = mapped_column(String(10))

    customer: Mapped[Customer] = relationship(back_populates="invoices")
