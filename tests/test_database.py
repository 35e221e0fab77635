import pytest

import database


def test_auth_token_round_trip(db):
    assert database.get_auth_token(db) is None

    database.set_auth_token(db, "tok", {"email": "admin@example.com"})

    assert database.get_auth_token(db) == "tok"
    assert database.get_stored_user(db) == {"email": "admin@example.com"}


def test_clear_auth_token(db):
    database.set_auth_token(db, "tok")

    database.clear_auth_token(db)

    assert database.get_auth_token(db) is None
    assert database.get_stored_user(db) is None


def test_invoice_series_is_created_on_first_use(db):
    series = database.get_invoice_series(db)

    assert series.last_invoice_number == 0
    assert series.padding == 4
    assert series.year_prefix is False


def test_marking_used_number_advances_series(db):
    database.mark_invoice_number(db, 7, database.USED)

    assert database.get_invoice_series(db).last_invoice_number == 7
    assert database.list_unavailable_numbers(db) == {7}


def test_used_number_cannot_be_marked_again(db):
    database.mark_invoice_number(db, 3, database.USED)

    with pytest.raises(ValueError):
        database.mark_invoice_number(db, 3, database.RESERVED)


def test_reserved_number_can_be_used(db):
    database.mark_invoice_number(db, 4, database.RESERVED, "Held for export order")

    mark = database.mark_invoice_number(db, 4, database.USED)

    assert mark.kind == database.USED
    assert mark.reason is None


def test_unknown_mark_kind(db):
    with pytest.raises(ValueError):
        database.mark_invoice_number(db, 1, "VOID")
