from sqlalchemy import create_engine, Column, Integer, String, Boolean, DateTime, Text
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool
from datetime import datetime, timezone
import json

from config import settings

DATABASE_URL = settings.DATABASE_URL

engine_kwargs = {}
if DATABASE_URL.startswith("sqlite"):
    engine_kwargs["connect_args"] = {"check_same_thread": False}
    # In-memory databases must share one connection to be visible across sessions
    if DATABASE_URL in ("sqlite://", "sqlite:///:memory:"):
        engine_kwargs["poolclass"] = StaticPool

engine = create_engine(DATABASE_URL, **engine_kwargs)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()

USED = "USED"
SKIPPED = "SKIPPED"
RESERVED = "RESERVED"


class ApiToken(Base):
    __tablename__ = "api_tokens"

    id = Column(String, primary_key=True, default="api_auth_token")
    token = Column(String)
    user_json = Column(Text)
    updated_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))


class InvoiceSeries(Base):
    __tablename__ = "invoice_series"

    id = Column(String, primary_key=True, default="default")
    last_invoice_number = Column(Integer, nullable=False, default=0)
    padding = Column(Integer, nullable=False, default=4)
    year_prefix = Column(Boolean, nullable=False, default=False)


class InvoiceNumberMark(Base):
    __tablename__ = "invoice_number_marks"

    number = Column(Integer, primary_key=True)
    kind = Column(String, nullable=False)
    reason = Column(String)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def init_db():
    Base.metadata.create_all(bind=engine)

def set_auth_token(db, token: str, user: dict = None):
    """Store the remote API token (and the logged-in user, when known)"""
    row = db.query(ApiToken).first()
    if not row:
        row = ApiToken()
        db.add(row)
    row.token = token
    if user is not None:
        row.user_json = json.dumps(user)
    db.commit()
    return row

def get_auth_token(db):
    row = db.query(ApiToken).first()
    if not row:
        return None
    return row.token or None

def get_stored_user(db):
    row = db.query(ApiToken).first()
    if not row or not row.user_json:
        return None
    return json.loads(row.user_json)

def clear_auth_token(db):
    row = db.query(ApiToken).first()
    if row:
        row.token = None
        row.user_json = None
        db.commit()

def get_invoice_series(db):
    series = db.query(InvoiceSeries).first()
    if not series:
        series = InvoiceSeries(last_invoice_number=0, padding=4, year_prefix=False)
        db.add(series)
        db.commit()
    return series

def list_unavailable_numbers(db):
    """Numbers that are used, skipped or reserved"""
    return {mark.number for mark in db.query(InvoiceNumberMark).all()}

def mark_invoice_number(db, number: int, kind: str, reason: str = None):
    if kind not in (USED, SKIPPED, RESERVED):
        raise ValueError(f"Unknown invoice number mark: {kind}")
    mark = db.get(InvoiceNumberMark, number)
    if mark and mark.kind == USED:
        raise ValueError(f"Invoice number {number} is already used")
    if not mark:
        mark = InvoiceNumberMark(number=number)
        db.add(mark)
    mark.kind = kind
    mark.reason = reason
    if kind == USED:
        series = get_invoice_series(db)
        if number > series.last_invoice_number:
            series.last_invoice_number = number
    db.commit()
    return mark
