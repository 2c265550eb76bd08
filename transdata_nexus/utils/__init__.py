"""
TransDataNexus Utilities

- parsing: Number and shipment date parsing
- statistics: Volatility, outliers, concentration and growth reducers
- formatting: Number/currency/percentage formatting
- normalization: Company/country name harmonization
- logging_utils: JSON-lines and console logging
"""

from .parsing import parse_number, has_number, parse_shipment_date, month_key, clean_text
from .statistics import (
    Severity,
    mean,
    median,
    population_std,
    volatility,
    coefficient_of_variation,
    zscore_outliers,
    detect_price_spike,
    detect_volume_drop,
    top_share,
    concentration_index,
    hhi,
    hhi_from_values,
    classify_hhi,
    percent_change,
    window_growth,
    half_split_trend,
)
from .formatting import (
    format_large_number,
    safe_filename,
    format_plain_number,
)
from .normalization import (
    normalize_company_name,
    normalize_country_name,
    is_placeholder_party,
    others_label,
    product_category,
)
from .logging_utils import LogAction, setup_logging, generate_run_id, log_event

__all__ = [
    # Parsing
    'parse_number',
    'has_number',
    'parse_shipment_date',
    'month_key',
    'clean_text',

    # Statistics
    'Severity',
    'mean',
    'median',
    'population_std',
    'volatility',
    'coefficient_of_variation',
    'zscore_outliers',
    'detect_price_spike',
    'detect_volume_drop',
    'top_share',
    'concentration_index',
    'hhi',
    'hhi_from_values',
    'classify_hhi',
    'percent_change',
    'window_growth',
    'half_split_trend',

    # Formatting
    'format_large_number',
    'safe_filename',
    'format_plain_number',

    # Normalization
    'normalize_company_name',
    'normalize_country_name',
    'is_placeholder_party',
    'others_label',
    'product_category',

    # Logging
    'LogAction',
    'setup_logging',
    'generate_run_id',
    'log_event',
]
