"""SQLAlchemy table definitions."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (
    BigInteger,
    Column,
    DateTime,
    Float,
    Integer,
    String,
    JSON,
    create_engine,
)
from sqlalchemy.orm import DeclarativeBase, sessionmaker


class Base(DeclarativeBase):
    pass


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DealRow(Base):
    __tablename__ = "deals"

    # Insertion order is the autoincrement sequence; id is the public identifier
    seq = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(BigInteger, nullable=False, unique=True, index=True)
    schema_version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), default=_utcnow)

    # Input
    title = Column(String(255), nullable=False)
    property_type = Column(String(50), nullable=False, index=True)
    strategy = Column(String(50), nullable=False)
    purchase_price = Column(Float, default=0.0)
    equity = Column(Float, default=0.0)
    monthly_rent = Column(Float, default=0.0)
    monthly_expenses = Column(Float, default=0.0)
    annual_interest_rate_percent = Column(Float, default=0.0)
    loan_term_years = Column(Float, default=0.0)
    broker_fee_percent = Column(Float, default=0.0)
    other_costs_percent = Column(Float, default=0.0)
    photos = Column(JSON, default=list)

    # Result
    loan_amount = Column(Float, default=0.0)
    monthly_loan_payment = Column(Float, default=0.0)
    monthly_cashflow = Column(Float, default=0.0)
    gross_yield_percent = Column(Float, default=0.0)
    equity_return_percent = Column(Float, default=0.0)
    broker_fee_amount = Column(Float, default=0.0)
    other_buying_costs_amount = Column(Float, default=0.0)
    total_purchase_costs = Column(Float, default=0.0)
    total_investment = Column(Float, default=0.0)


def init_db(db_url: str = "sqlite:///dealbook.db") -> sessionmaker:
    """Initialize the database and return a session factory."""
    engine = create_engine(db_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
