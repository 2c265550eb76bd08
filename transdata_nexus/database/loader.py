"""
CSV loader for shipment records.

Reads an export file with pandas (every column as text, blanks kept as
empty strings) and inserts the columns known to TradeRecord in batches.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

import pandas as pd
from sqlalchemy.orm import Session

from .models import TradeRecord

logger = logging.getLogger(__name__)


@dataclass
class LoadResult:
    """Result of a CSV load"""
    success: bool = True
    records_read: int = 0
    records_inserted: int = 0
    columns_ignored: int = 0
    duration_seconds: float = 0.0
    error_message: Optional[str] = None


def _normalize_column(name: str) -> str:
    return str(name).strip().lower().replace(' ', '_').replace('-', '_')


def load_trade_records_csv(session: Session, path: Path, batch_size: int = 1000) -> LoadResult:
    """
    Load a shipment CSV into the exp_india table

    Args:
        session: Open SQLAlchemy session (committed on success)
        path: CSV file path
        batch_size: Rows per insert batch

    Returns:
        LoadResult with counts
    """
    start_time = datetime.now()
    result = LoadResult()

    try:
        df = pd.read_csv(path, dtype=str, keep_default_na=False)
        df.columns = [_normalize_column(c) for c in df.columns]

        known = [c for c in df.columns if c in TradeRecord.FIELDS and c != 'id']
        result.columns_ignored = len(df.columns) - len(known)
        result.records_read = len(df)

        rows = df[known].to_dict(orient='records')
        for start in range(0, len(rows), batch_size):
            batch = [
                TradeRecord(**{k: (v if v != '' else None) for k, v in row.items()})
                for row in rows[start:start + batch_size]
            ]
            session.add_all(batch)
            session.flush()
            result.records_inserted += len(batch)

        session.commit()

    except Exception as e:
        session.rollback()
        result.records_inserted = 0
        result.success = False
        result.error_message = str(e)
        logger.error(f"Error loading file {path}: {e}")

    result.duration_seconds = (datetime.now() - start_time).total_seconds()
    logger.info(f"Load complete: {result.records_inserted} of {result.records_read} records inserted")
    return result
