"""Tests for the create, update and delete invoice actions."""

from datetime import date
from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from sqlalchemy import text

from dashboard import actions, crud
from dashboard.actions import (
    CREATE_FAILED_MESSAGE,
    DELETE_FAILED_MESSAGE,
    MISSING_FIELDS_MESSAGE,
    UPDATE_FAILED_MESSAGE,
    to_cents,
)
from dashboard.cache import INVOICES_PATH
from dashboard.exceptions import InvoiceValidationError, OperationDisabledError, PersistenceError
from dashboard.models import InvoiceStatus


def _rows(db):
    return db.execute(text("SELECT id, customer_id, amount, status, date FROM invoices ORDER BY date")).all()


def _prime(page_cache):
    page_cache.get_or_render(INVOICES_PATH, lambda: "<p>stale</p>")
    assert INVOICES_PATH in page_cache


def _raise_persistence(*args, **kwargs):
    raise PersistenceError("boom")


@pytest.mark.parametrize(
    "amount, cents",
    [(Decimal("49.99"), 4999), (Decimal("0.29"), 29), (Decimal("1234.56"), 123456), (Decimal("1.005"), 101)],
)
def test_to_cents(amount, cents):
    assert to_cents(amount) == cents


class TestCreateInvoice:
    def test_valid_form_inserts_and_redirects(self, db, customers, page_cache):
        _prime(page_cache)

        result = actions.create_invoice(
            db, {"customerId": customers[0].id, "amount": "49.99", "status": "paid"}, page_cache
        )

        assert result.redirect_to == INVOICES_PATH
        assert not result.failed
        (row,) = _rows(db)
        assert row.customer_id == customers[0].id
        assert row.amount == 4999
        assert row.status == "paid"
        assert row.date == date.today().isoformat()
        assert INVOICES_PATH not in page_cache

    def test_invalid_form_returns_errors_without_side_effects(self, db, customers, page_cache):
        _prime(page_cache)

        result = actions.create_invoice(db, {"customerId": customers[0].id, "amount": "0"}, page_cache)

        assert result.redirect_to is None
        assert result.state.message == MISSING_FIELDS_MESSAGE
        assert set(result.state.errors) == {"amount", "status"}
        assert _rows(db) == []
        assert INVOICES_PATH in page_cache

    def test_database_error_still_revalidates_and_redirects(self, db, customers, page_cache, monkeypatch):
        monkeypatch.setattr(crud, "insert_invoice", _raise_persistence)
        _prime(page_cache)

        result = actions.create_invoice(
            db, {"customerId": customers[0].id, "amount": "10", "status": "pending"}, page_cache
        )

        assert result.state.message == CREATE_FAILED_MESSAGE
        assert result.state.errors == {}
        assert result.redirect_to == INVOICES_PATH
        assert INVOICES_PATH not in page_cache

    @pytest.mark.parametrize("amount", ["1e30", "99999999999999999999"])
    def test_oversized_amount_is_a_field_error(self, db, customers, page_cache, amount):
        result = actions.create_invoice(
            db, {"customerId": customers[0].id, "amount": amount, "status": "paid"}, page_cache
        )

        assert result.redirect_to is None
        assert result.state.message == MISSING_FIELDS_MESSAGE
        assert result.state.errors == {"amount": ["Number must be less than or equal to 92233720368547758.07"]}
        assert _rows(db) == []

    def test_largest_amount_is_stored_exactly(self, db, customers, page_cache):
        result = actions.create_invoice(
            db, {"customerId": customers[0].id, "amount": "92233720368547758.07", "status": "paid"}, page_cache
        )

        assert not result.failed
        (row,) = _rows(db)
        assert row.amount == 2 ** 63 - 1

    def test_driver_overflow_becomes_database_error(self, db, customers, page_cache, monkeypatch):
        monkeypatch.setattr(actions, "to_cents", lambda amount: 10 ** 20)

        result = actions.create_invoice(
            db, {"customerId": customers[0].id, "amount": "10", "status": "paid"}, page_cache
        )

        assert result.state.message == CREATE_FAILED_MESSAGE
        assert result.redirect_to == INVOICES_PATH
        assert _rows(db) == []


class TestUpdateInvoice:
    def test_valid_form_updates_row_and_keeps_date(self, db, customers, invoice_id, page_cache):
        _prime(page_cache)
        form = {"id": invoice_id, "customerId": customers[1].id, "amount": "250.5", "status": "paid"}

        result = actions.update_invoice(db, form, page_cache)

        assert result.redirect_to == INVOICES_PATH
        assert not result.failed
        (row,) = _rows(db)
        assert row.customer_id == customers[1].id
        assert row.amount == 25050
        assert row.status == "paid"
        assert row.date == "2023-12-06"
        assert INVOICES_PATH not in page_cache

    def test_malformed_form_raises(self, db, customers, invoice_id, page_cache):
        form = {"id": invoice_id, "customerId": customers[1].id, "amount": "abc", "status": "paid"}

        with pytest.raises(InvoiceValidationError) as exc_info:
            actions.update_invoice(db, form, page_cache)

        assert "amount" in exc_info.value.field_errors
        (row,) = _rows(db)
        assert row.amount == 15795

    def test_database_error_redirects_without_revalidating(self, db, customers, invoice_id, page_cache, monkeypatch):
        monkeypatch.setattr(crud, "update_invoice", _raise_persistence)
        _prime(page_cache)
        form = {"id": invoice_id, "customerId": customers[1].id, "amount": "5", "status": "paid"}

        result = actions.update_invoice(db, form, page_cache)

        assert result.state.message == UPDATE_FAILED_MESSAGE
        assert result.redirect_to == INVOICES_PATH
        assert INVOICES_PATH in page_cache

    def test_unknown_id_changes_nothing(self, db, customers, invoice_id, page_cache):
        form = {"id": "missing", "customerId": customers[1].id, "amount": "5", "status": "paid"}

        result = actions.update_invoice(db, form, page_cache)

        assert result.redirect_to == INVOICES_PATH
        (row,) = _rows(db)
        assert row.amount == 15795

    @pytest.mark.parametrize("amount", ["1e30", "99999999999999999999"])
    def test_oversized_amount_raises(self, db, customers, invoice_id, page_cache, amount):
        form = {"id": invoice_id, "customerId": customers[1].id, "amount": amount, "status": "paid"}

        with pytest.raises(InvoiceValidationError) as exc_info:
            actions.update_invoice(db, form, page_cache)

        assert exc_info.value.field_errors == {"amount": ["Number must be less than or equal to 92233720368547758.07"]}
        (row,) = _rows(db)
        assert row.amount == 15795

    def test_driver_overflow_becomes_database_error(self, db, customers, invoice_id, page_cache, monkeypatch):
        monkeypatch.setattr(actions, "to_cents", lambda amount: 10 ** 20)
        form = {"id": invoice_id, "customerId": customers[1].id, "amount": "10", "status": "paid"}

        result = actions.update_invoice(db, form, page_cache)

        assert result.state.message == UPDATE_FAILED_MESSAGE
        assert result.redirect_to == INVOICES_PATH
        (row,) = _rows(db)
        assert row.amount == 15795


class TestDeleteInvoice:
    def test_disabled_delete_always_raises_before_database(self, db, invoice_id, page_cache, monkeypatch):
        delete_mock = MagicMock()
        monkeypatch.setattr(crud, "delete_invoice", delete_mock)

        with pytest.raises(OperationDisabledError, match="Failed to Delete Invoice"):
            actions.delete_invoice(db, {"id": invoice_id}, page_cache)

        delete_mock.assert_not_called()
        assert len(_rows(db)) == 1

    def test_disabled_delete_raises_even_for_malformed_form(self, db, page_cache):
        with pytest.raises(OperationDisabledError):
            actions.delete_invoice(db, {}, page_cache)

    def test_enabled_delete_removes_only_matching_row(self, db, customers, invoice_id, page_cache):
        other_id = crud.insert_invoice(db, customers[1].id, 500, InvoiceStatus.PAID, "2024-01-02")
        _prime(page_cache)

        result = actions.delete_invoice(db, {"id": invoice_id}, page_cache, enabled=True)

        assert result.redirect_to == INVOICES_PATH
        assert not result.failed
        assert [row.id for row in _rows(db)] == [other_id]
        assert INVOICES_PATH not in page_cache

    def test_enabled_delete_database_error(self, db, invoice_id, page_cache, monkeypatch):
        monkeypatch.setattr(crud, "delete_invoice", _raise_persistence)
        _prime(page_cache)

        result = actions.delete_invoice(db, {"id": invoice_id}, page_cache, enabled=True)

        assert result.state.message == DELETE_FAILED_MESSAGE
        assert INVOICES_PATH in page_cache

    def test_enabled_delete_validates_id(self, db, page_cache):
        with pytest.raises(InvoiceValidationError):
            actions.delete_invoice(db, {"id": ""}, page_cache, enabled=True)
