"""
TransDataNexus Configuration Module

- TransDataConfig: Main configuration class
- DatabaseConfig: Shipment record store connection
- CacheConfig: Flask-Caching backend settings
- AnalyticsConfig: Statistical thresholds
- ReportOutputConfig: Report generation and storage
- ApiConfig: HTTP service settings
"""

from .settings import (
    TransDataConfig,
    DatabaseConfig,
    DatabaseType,
    CacheConfig,
    CacheType,
    AnalyticsConfig,
    ReportOutputConfig,
    ApiConfig,
    default_config,
)

__all__ = [
    # Main config
    'TransDataConfig',
    'default_config',

    # Sections
    'DatabaseConfig',
    'DatabaseType',
    'CacheConfig',
    'CacheType',
    'AnalyticsConfig',
    'ReportOutputConfig',
    'ApiConfig',
]
