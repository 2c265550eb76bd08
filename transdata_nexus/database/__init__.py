"""
TransDataNexus Database Module

Tables:
- TradeRecord: Export shipment lines (exp_india)

Access:
- TradeRecordRepository: Search, count and scan helpers
- load_trade_records_csv: Bulk CSV import
"""

from .models import (
    Base,
    TradeRecord,
    init_database,
    create_all_tables,
    create_db_engine,
    get_session_factory,
)
from .repository import (
    TradeRecordRepository,
    ANALYTICS_SEARCH_FIELDS,
    PARTY_SEARCH_FIELDS,
    PRODUCT_SEARCH_FIELDS,
)
from .loader import LoadResult, load_trade_records_csv

__all__ = [
    # Base
    'Base',

    # Tables
    'TradeRecord',

    # Access
    'TradeRecordRepository',
    'ANALYTICS_SEARCH_FIELDS',
    'PARTY_SEARCH_FIELDS',
    'PRODUCT_SEARCH_FIELDS',
    'LoadResult',
    'load_trade_records_csv',

    # Utilities
    'init_database',
    'create_all_tables',
    'create_db_engine',
    'get_session_factory',
]
