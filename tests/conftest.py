"""
Shared pytest setup.

Settings are read when ``config`` is first imported, so the environment is
pinned here before any test module pulls it in: an in-memory SQLite store, no
seeded API token and a fixed default exchange rate.
"""

import os
from unittest.mock import MagicMock

import pytest

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["API_AUTH_TOKEN"] = ""
os.environ["API_BASE_URL"] = "http://api.test/api"
os.environ["DEFAULT_EXCHANGE_RATE"] = "83.5"
os.environ["DEFAULT_TAX_RATE"] = "10"
os.environ["ORIGINS"] = "http://localhost:3000"
os.environ["COMPANY_NAME"] = "Acme Exports Pvt Ltd"

import database  # noqa: E402


@pytest.fixture
def client():
    """Stand-in for ``ApiClient``; set ``client.get.return_value`` and friends per test."""
    return MagicMock()


@pytest.fixture
def db():
    database.Base.metadata.drop_all(bind=database.engine)
    database.Base.metadata.create_all(bind=database.engine)
    session = database.SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def pi():
    return {
        "_id": "pi123",
        "performa_invoice_number": "PI-2024-0001",
        "customer_name": "Globex Trading",
        "quotation_id": "Q-778",
        "status": "APPROVED",
        "payment_status": "PARTIAL",
        "items": [
            {"product_id": "p1", "product_name": "Servo Motor", "part_number": "SM-100", "quantity": 10, "unit_price": 50},
            {"product_id": "p2", "product_name": "Drive Belt", "part_number": "DB-20", "quantity": 5, "unit_price": 100},
        ],
        "subtotal": 1000,
        "tax": 0,
        "shipping": 0,
        "total_amount": 1000,
        "payment_received": 400,
        "exchange_rate": 80,
        "issue_date": "2024-07-01T00:00:00.000Z",
        "valid_until": "2024-07-31T00:00:00.000Z",
    }
