"""
TransDataNexus Configuration Settings
Configuration for the trade analytics service:
- Database connection (shipment records, read-only)
- Response cache (Flask-Caching)
- Analytics thresholds
- Report generation and storage
- HTTP API
"""

import os
from pathlib import Path
from dataclasses import dataclass, field
from typing import Dict, Optional
from enum import Enum

from dotenv import load_dotenv


class DatabaseType(Enum):
    """Supported database types"""
    MYSQL = "mysql"
    POSTGRESQL = "postgresql"
    SQLITE = "sqlite"


class CacheType(Enum):
    """Supported Flask-Caching backends"""
    SIMPLE = "SimpleCache"
    REDIS = "RedisCache"
    NULL = "NullCache"


# =============================================================================
# DATABASE CONFIGURATION
# =============================================================================

@dataclass
class DatabaseConfig:
    """Database connection configuration"""
    db_type: DatabaseType = DatabaseType.SQLITE
    host: str = "localhost"
    port: int = 3306
    database: str = "transdata"
    username: str = ""
    password: str = ""

    # SQLite specific
    sqlite_path: Optional[Path] = None

    # Connection pool settings
    pool_size: int = 5
    max_overflow: int = 10
    pool_timeout: int = 30

    echo: bool = False

    def get_connection_string(self) -> str:
        """Generate database connection string"""
        if self.db_type == DatabaseType.SQLITE:
            path = self.sqlite_path or Path("./data/transdata.db")
            return f"sqlite:///{path}"
        elif self.db_type == DatabaseType.MYSQL:
            return f"mysql+pymysql://{self.username}:{self.password}@{self.host}:{self.port}/{self.database}"
        elif self.db_type == DatabaseType.POSTGRESQL:
            return f"postgresql+psycopg2://{self.username}:{self.password}@{self.host}:{self.port}/{self.database}"
        else:
            raise ValueError(f"Unsupported database type: {self.db_type}")


# =============================================================================
# CACHE CONFIGURATION
# =============================================================================

@dataclass
class CacheConfig:
    """Response cache configuration (Flask-Caching)"""
    cache_type: CacheType = CacheType.SIMPLE
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_db: int = 0

    default_timeout: int = 300  # seconds
    trade_summary_timeout: int = 300
    supplier_summary_timeout: int = 600
    key_prefix: str = "tdn"

    def to_flask_config(self) -> Dict:
        """Build the config mapping expected by flask_caching.Cache"""
        flask_config = {
            'CACHE_TYPE': self.cache_type.value,
            'CACHE_DEFAULT_TIMEOUT': self.default_timeout,
            'CACHE_KEY_PREFIX': f"{self.key_prefix}:",
        }
        if self.cache_type == CacheType.REDIS:
            flask_config.update({
                'CACHE_REDIS_HOST': self.redis_host,
                'CACHE_REDIS_PORT': self.redis_port,
                'CACHE_REDIS_DB': self.redis_db,
            })
        return flask_config


# =============================================================================
# ANALYTICS CONFIGURATION
# =============================================================================

@dataclass
class AnalyticsConfig:
    """Thresholds used by the statistical reducers"""
    # Anomaly detection
    zscore_threshold: float = 2.0
    critical_zscore_threshold: float = 3.0
    volume_drop_ratio: float = 0.7
    severe_volume_drop_ratio: float = 0.5
    supplier_concentration_threshold: float = 0.4
    severe_supplier_concentration: float = 0.6

    # Growth windows (monthly buckets)
    growth_window_months: int = 6
    trend_window_months: int = 3
    growth_floor: float = -20.0
    growth_ceiling: float = 50.0

    # Supplier scoring weights
    reliability_weight: float = 0.30
    price_weight: float = 0.25
    delivery_weight: float = 0.25
    quality_weight: float = 0.20
    max_supplier_recommendations: int = 10

    # HHI bands (0-10000 scale)
    hhi_moderate: float = 1500.0
    hhi_high: float = 2500.0

    # Search sampling
    search_sample_size: int = 100
    search_result_limit: int = 10
    filtered_result_limit: int = 3
    quick_search_limit: int = 10
    trade_summary_limit: int = 1000
    supplier_summary_limit: int = 5
    analytics_fetch_limit: int = 50000


# =============================================================================
# REPORT CONFIGURATION
# =============================================================================

@dataclass
class ReportOutputConfig:
    """Report generation and storage configuration"""
    reports_directory: Path = field(default_factory=lambda: Path("./reports"))
    expiry_hours: int = 24
    advanced_expiry_days: int = 30

    company_name: str = "TransDataNexus"
    author: str = "TransDataNexus Analytics"

    # Brand colours (hex)
    colors: Dict[str, str] = field(default_factory=lambda: {
        'primary': '#1E3A8A',
        'secondary': '#2563EB',
        'accent': '#10B981',
        'warning': '#F59E0B',
        'danger': '#DC2626',
        'neutral': '#6B7280',
    })

    chart_dpi: int = 150


# =============================================================================
# API CONFIGURATION
# =============================================================================

@dataclass
class ApiConfig:
    """HTTP API configuration"""
    host: str = "0.0.0.0"
    port: int = 5000
    debug: bool = False
    log_directory: Optional[Path] = None


# =============================================================================
# MAIN CONFIGURATION
# =============================================================================

@dataclass
class TransDataConfig:
    """Main configuration for the trade analytics service"""

    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    analytics: AnalyticsConfig = field(default_factory=AnalyticsConfig)
    reports: ReportOutputConfig = field(default_factory=ReportOutputConfig)
    api: ApiConfig = field(default_factory=ApiConfig)

    log_level: str = "INFO"

    @classmethod
    def from_environment(cls) -> 'TransDataConfig':
        """Create configuration from environment variables (and a .env file)"""
        load_dotenv()

        config = cls()

        # Database settings
        db_type = os.getenv('TDN_DB_TYPE', 'sqlite').lower()
        if db_type == 'mysql':
            config.database.db_type = DatabaseType.MYSQL
        elif db_type == 'postgresql':
            config.database.db_type = DatabaseType.POSTGRESQL
            config.database.port = 5432
        else:
            config.database.db_type = DatabaseType.SQLITE

        config.database.host = os.getenv('TDN_DB_HOST', config.database.host)
        config.database.port = int(os.getenv('TDN_DB_PORT', config.database.port))
        config.database.database = os.getenv('TDN_DB_NAME', config.database.database)
        config.database.username = os.getenv('TDN_DB_USER', '')
        config.database.password = os.getenv('TDN_DB_PASSWORD', '')

        sqlite_path = os.getenv('TDN_SQLITE_PATH')
        if sqlite_path:
            config.database.sqlite_path = Path(sqlite_path)

        # Cache settings
        cache_type = os.getenv('TDN_CACHE_TYPE', 'simple').lower()
        if cache_type == 'redis':
            config.cache.cache_type = CacheType.REDIS
        elif cache_type == 'null':
            config.cache.cache_type = CacheType.NULL
        config.cache.redis_host = os.getenv('CACHE_HOST', config.cache.redis_host)
        config.cache.redis_port = int(os.getenv('CACHE_PORT', config.cache.redis_port))
        config.cache.redis_db = int(os.getenv('CACHE_DB', config.cache.redis_db))

        # Report settings
        reports_dir = os.getenv('TDN_REPORTS_DIR')
        if reports_dir:
            config.reports.reports_directory = Path(reports_dir)
        config.reports.expiry_hours = int(os.getenv('TDN_REPORT_EXPIRY_HOURS', config.reports.expiry_hours))

        # API settings
        config.api.host = os.getenv('TDN_API_HOST', config.api.host)
        config.api.port = int(os.getenv('TDN_API_PORT', config.api.port))
        config.api.debug = os.getenv('TDN_API_DEBUG', 'false').lower() == 'true'

        log_dir = os.getenv('TDN_LOG_DIR')
        if log_dir:
            config.api.log_directory = Path(log_dir)

        config.log_level = os.getenv('TDN_LOG_LEVEL', config.log_level).upper()

        return config


# Default configuration instance
default_config = TransDataConfig()
