"""
Database Models for TransDataNexus
SQLAlchemy ORM model for the Indian export shipment records served by the
analytics API. Fields are stored exactly as imported (strings); numeric and
date parsing happens in the analytics layer.
"""

from datetime import datetime
from typing import Dict

from sqlalchemy import (
    Column, Integer, String, Text, DateTime, Index,
    create_engine, event,
)
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

Base = declarative_base()


# =============================================================================
# SHIPMENT RECORDS
# =============================================================================

class TradeRecord(Base):
    """
    One export shipment line (shipping bill item).

    Values, prices, quantities and dates are kept as the source strings;
    missing or unparseable numbers count as zero downstream.
    """
    __tablename__ = 'exp_india'

    id = Column(Integer, primary_key=True, autoincrement=True)

    # Parties
    supplier_name = Column(String(300))
    buyer_name = Column(String(300))

    # Product
    product_description = Column(Text)
    hs_code = Column(String(20))
    chapter = Column(String(10))

    # Geography and logistics
    country_of_origin = Column(String(100))
    country_of_destination = Column(String(100))
    port_of_origin = Column(String(100))
    port_of_destination = Column(String(100))
    mode = Column(String(50))

    # Amounts (as imported)
    quantity = Column(String(50))
    uqc = Column(String(20))  # Unit quantity code
    unit_rate_usd = Column(String(50))
    total_value_usd = Column(String(50))

    # Period
    shipping_bill_date = Column(String(50))
    year = Column(String(10))
    month = Column(String(10))

    # Document references
    invoice_no = Column(String(100))
    shipping_bill_no = Column(String(100))

    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        Index('idx_exp_india_hs_code', 'hs_code'),
        Index('idx_exp_india_supplier', 'supplier_name'),
        Index('idx_exp_india_buyer', 'buyer_name'),
        Index('idx_exp_india_destination', 'country_of_destination'),
        Index('idx_exp_india_year', 'year'),
    )

    # Columns exposed to the analytics layer
    FIELDS = (
        'id', 'supplier_name', 'buyer_name', 'product_description', 'hs_code',
        'chapter', 'country_of_origin', 'country_of_destination',
        'port_of_origin', 'port_of_destination', 'mode', 'quantity', 'uqc',
        'unit_rate_usd', 'total_value_usd', 'shipping_bill_date', 'year',
        'month', 'invoice_no', 'shipping_bill_no',
    )

    def to_dict(self) -> Dict:
        """Plain mapping of the record as consumed by the analytics services"""
        return {name: getattr(self, name) for name in self.FIELDS}

    def __repr__(self):
        return f"<TradeRecord({self.id}, {self.hs_code}, {self.supplier_name} -> {self.country_of_destination})>"


# =============================================================================
# DATABASE UTILITIES
# =============================================================================

def create_db_engine(connection_string: str, echo: bool = False):
    """Create database engine with appropriate settings"""
    if connection_string.startswith('sqlite'):
        engine = create_engine(
            connection_string,
            echo=echo,
            connect_args={'check_same_thread': False},
            poolclass=StaticPool
        )

        @event.listens_for(engine, "connect")
        def set_sqlite_pragma(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA case_sensitive_like=OFF")
            cursor.close()
    else:
        engine = create_engine(
            connection_string,
            echo=echo,
            pool_size=5,
            max_overflow=10,
            pool_timeout=30,
            pool_recycle=3600
        )

    return engine


def create_all_tables(engine):
    """Create all tables in the database"""
    Base.metadata.create_all(engine)


def get_session_factory(engine):
    """Get sessionmaker bound to engine"""
    return sessionmaker(bind=engine)


def init_database(connection_string: str, echo: bool = False):
    """Initialize database and return session factory"""
    engine = create_db_engine(connection_string, echo)
    create_all_tables(engine)
    return get_session_factory(engine), engine
