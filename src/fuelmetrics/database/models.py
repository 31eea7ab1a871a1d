"""SQLAlchemy models for the fuelmetrics store."""

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    Index,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
    create_engine,
)
from sqlalchemy.engine import make_url
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

Base = declarative_base()


class Site(Base):
    """Site model."""

    __tablename__ = "sites"

    site_code = Column(Integer, primary_key=True, autoincrement=False)
    site_name = Column(String, nullable=True)
    post_code = Column(String, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    is_bunkered = Column(Boolean, nullable=True)


class LedgerTransaction(Base):
    """Transaction ledger model: one row per financial event."""

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True)
    site_code = Column(Integer, nullable=False)
    nominal_code = Column(String(4), nullable=False)
    transaction_date = Column(Date, nullable=False)
    amount = Column(Numeric(14, 2), nullable=False)
    volume = Column(Numeric(14, 2), nullable=True)
    category = Column(String, nullable=False, default="other")
    deleted_flag = Column(Integer, nullable=True, default=0)

    __table_args__ = (
        Index("ix_transactions_code_date", "nominal_code", "transaction_date"),
        Index("ix_transactions_site_date", "site_code", "transaction_date"),
    )


class MonthlySummary(Base):
    """Monthly pre-aggregate per site."""

    __tablename__ = "monthly_summary"

    id = Column(Integer, primary_key=True)
    site_code = Column(Integer, nullable=False)
    year = Column(Integer, nullable=False)
    month = Column(Integer, nullable=False)
    bunkered_volume = Column(Numeric(14, 2), default=0, nullable=False)
    bunkered_sales = Column(Numeric(14, 2), default=0, nullable=False)
    bunkered_purchases = Column(Numeric(14, 2), default=0, nullable=False)
    non_bunkered_volume = Column(Numeric(14, 2), default=0, nullable=False)
    non_bunkered_sales = Column(Numeric(14, 2), default=0, nullable=False)
    non_bunkered_purchases = Column(Numeric(14, 2), default=0, nullable=False)
    shop_sales = Column(Numeric(14, 2), default=0, nullable=False)
    shop_purchases = Column(Numeric(14, 2), default=0, nullable=False)
    valet_sales = Column(Numeric(14, 2), default=0, nullable=False)
    valet_purchases = Column(Numeric(14, 2), default=0, nullable=False)
    overheads = Column(Numeric(14, 2), default=0, nullable=False)
    labour_cost = Column(Numeric(14, 2), default=0, nullable=False)

    __table_args__ = (
        UniqueConstraint("site_code", "year", "month", name="uq_monthly_summary_period"),
    )


class FuelMarginData(Base):
    """Fuel margin monthly data per site."""

    __tablename__ = "fuel_margin_data"

    id = Column(Integer, primary_key=True)
    site_code = Column(Integer, nullable=False)
    year = Column(Integer, nullable=False)
    month = Column(Integer, nullable=False)
    sale_volume = Column(Numeric(14, 2), default=0, nullable=False)
    net_sales = Column(Numeric(14, 2), default=0, nullable=False)
    fuel_profit = Column(Numeric(14, 2), default=0, nullable=False)
    purchases = Column(Numeric(14, 2), default=0, nullable=False)
    ppl = Column(Numeric(10, 4), nullable=True)

    __table_args__ = (
        UniqueConstraint("site_code", "year", "month", name="uq_fuel_margin_period"),
    )


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    url = make_url(database_url)
    engine_args = {}
    if url.get_backend_name() == "sqlite":
        # Read queries run on worker threads.
        engine_args["connect_args"] = {"check_same_thread": False}
        if url.database in (None, "", ":memory:"):
            # An in-memory database lives in a single connection.
            engine_args["poolclass"] = StaticPool
    engine = create_engine(url, echo=False, **engine_args)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
