"""
Trade Record Repository
Read-only query helpers over the shipment table used by the analytics
services. Searches are case-insensitive substring matches over a set of
columns, optionally narrowed by exact-match filters.
"""

import logging
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import or_, func, desc, text
from sqlalchemy.orm import Session

from .models import TradeRecord

logger = logging.getLogger(__name__)


# Column sets searched by the different endpoints
ANALYTICS_SEARCH_FIELDS = ('product_description', 'hs_code', 'chapter')
PARTY_SEARCH_FIELDS = ('product_description', 'supplier_name', 'buyer_name')
PRODUCT_SEARCH_FIELDS = ('product_description', 'hs_code')

# Query parameter name -> exact-match column
FILTER_COLUMNS = {
    'import_country': 'country_of_destination',
    'export_country': 'country_of_origin',
    'exporter': 'supplier_name',
    'importer': 'buyer_name',
}


def escape_like(term: str) -> str:
    """Escape LIKE wildcards so the term matches literally (escape char is backslash)"""
    return term.replace('\\', '\\\\').replace('%', '\\%').replace('_', '\\_')


class TradeRecordRepository:
    """
    Query access to TradeRecord rows.

    Results are returned as plain dictionaries (TradeRecord.to_dict()) so the
    analytics layer never holds ORM state.
    """

    def __init__(self, session: Session):
        self.session = session

    # =========================================================================
    # QUERY BUILDING
    # =========================================================================

    def _base_query(self, term: str, fields: Sequence[str], filters: Optional[Dict[str, str]] = None,
                    dated_only: bool = False):
        query = self.session.query(TradeRecord)

        if term:
            pattern = f"%{escape_like(term)}%"
            query = query.filter(or_(*[getattr(TradeRecord, name).ilike(pattern, escape='\\') for name in fields]))

        for key, value in (filters or {}).items():
            if value is None or str(value).strip() == '':
                continue
            column = FILTER_COLUMNS.get(key, key)
            if column not in TradeRecord.FIELDS:
                raise ValueError(f"Unknown filter column: {key}")
            query = query.filter(getattr(TradeRecord, column) == value)

        if dated_only:
            query = query.filter(TradeRecord.shipping_bill_date.isnot(None), TradeRecord.shipping_bill_date != '')

        return query

    # =========================================================================
    # SEARCHES
    # =========================================================================

    def search(self, term: str, fields: Sequence[str] = PRODUCT_SEARCH_FIELDS,
               filters: Optional[Dict[str, str]] = None, limit: Optional[int] = None,
               offset: int = 0, newest_first: bool = False, dated_only: bool = False) -> List[Dict]:
        """
        Find records whose fields contain the search term

        Args:
            term: Case-insensitive substring to look for
            fields: Columns searched (any match qualifies)
            filters: Exact-match filters keyed by query parameter or column name
            limit: Maximum number of rows
            offset: Rows to skip
            newest_first: Order by year descending
            dated_only: Skip records without a shipping bill date

        Returns:
            List of record dictionaries
        """
        query = self._base_query(term, fields, filters, dated_only)

        if newest_first:
            query = query.order_by(desc(TradeRecord.year), TradeRecord.id)
        else:
            query = query.order_by(TradeRecord.id)

        if offset:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)

        records = [row.to_dict() for row in query.all()]
        logger.debug(f"Search '{term}' over {list(fields)} returned {len(records)} records")
        return records

    def count(self, term: str, fields: Sequence[str] = PRODUCT_SEARCH_FIELDS,
              filters: Optional[Dict[str, str]] = None) -> int:
        """Count records matching a search"""
        return self._base_query(term, fields, filters).count()

    def top_counts(self, term: str, column: str, fields: Sequence[str] = PRODUCT_SEARCH_FIELDS,
                   limit: int = 5) -> List[Tuple[str, int]]:
        """
        Most frequent non-null values of a column among matching records

        Returns:
            List of (value, count) tuples, most frequent first
        """
        attribute = getattr(TradeRecord, column)
        query = (
            self._base_query(term, fields)
            .filter(attribute.isnot(None))
            .with_entities(attribute, func.count(TradeRecord.id).label('n'))
            .group_by(attribute)
            .order_by(desc('n'), attribute)
            .limit(limit)
        )
        return [(value, count) for value, count in query.all()]

    def column_values(self, columns: Iterable[str]) -> List[Dict]:
        """
        Scan selected columns over the whole table

        Used by the platform-wide analytics, which aggregates every record.
        """
        columns = list(columns)
        attributes = [getattr(TradeRecord, name) for name in columns]
        rows = self.session.query(*attributes).all()
        return [dict(zip(columns, row)) for row in rows]

    def total_count(self) -> int:
        return self.session.query(func.count(TradeRecord.id)).scalar() or 0

    def ping(self) -> bool:
        """Run a trivial query to check connectivity"""
        self.session.execute(text("SELECT 1"))
        return True
