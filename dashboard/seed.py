import logging
from datetime import date, timedelta
from sqlalchemy.orm import Session
from dashboard import crud
from dashboard.models import Customer, InvoiceStatus

logger = logging.getLogger(__name__)

PLACEHOLDER_CUSTOMERS = [
    ("Delba de Oliveira", "delba@oliveira.com", "/customers/delba-de-oliveira.png"),
    ("Lee Robinson", "lee@robinson.com", "/customers/lee-robinson.png"),
    ("Hector Simpson", "hector@simpson.com", "/customers/hector-simpson.png"),
    ("Steph Dietz", "steph@dietz.com", "/customers/steph-dietz.png"),
]

# (customer index, amount in cents, status, days ago)
PLACEHOLDER_INVOICES = [
    (0, 15795, InvoiceStatus.PENDING, 3),
    (1, 20348, InvoiceStatus.PENDING, 10),
    (2, 3040, InvoiceStatus.PAID, 24),
    (3, 44800, InvoiceStatus.PAID, 41),
    (0, 34577, InvoiceStatus.PENDING, 57),
]


def seed_demo_data(db: Session) -> bool:
    """Insert placeholder customers and invoices into an empty database."""
    if crud.count_customers(db):
        logger.info("Demo seed skipped: customers already present")
        return False

    customers = [Customer(name=name, email=email, image_url=image_url)
                 for name, email, image_url in PLACEHOLDER_CUSTOMERS]
    db.add_all(customers)
    db.commit()

    today = date.today()
    for index, amount, status, days_ago in PLACEHOLDER_INVOICES:
        crud.insert_invoice(db, customers[index].id, amount, status,
                            (today - timedelta(days=days_ago)).isoformat())

    logger.info(f"Demo seed: {len(customers)} customers, {len(PLACEHOLDER_INVOICES)} invoices")
    return True
