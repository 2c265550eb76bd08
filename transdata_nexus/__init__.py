"""
TransDataNexus Trade Analytics

Analytics and reporting service over Indian export shipment records:

Analytics:
- Product search with country/party filters and sample-based aggregates
- Quick summaries (top trade records, supplier/customer breakdowns)
- Statistical market analytics (volatility, anomalies, supplier scoring)
- Advanced market, competitive, trend and forecast analysis
- Insight generation for client-supplied chart data

Reports:
- Configurable multi-section reports (comprehensive, market analysis,
  competitive intelligence, trend forecast, custom)
- PDF (matplotlib) and PowerPoint (python-pptx) output
- Local report store with JSON metadata and expiry

Usage:
    from transdata_nexus import create_app
    app = create_app()
    app.run()

    from transdata_nexus import AdvancedAnalyticsEngine, TradeRecordRepository
    engine = AdvancedAnalyticsEngine.load("paracetamol", TradeRecordRepository(session))
    result = engine.run_comprehensive_analysis()
"""

__version__ = "1.0.0"
__author__ = "TransDataNexus Analytics"

from .config.settings import TransDataConfig, default_config

from .database.models import TradeRecord, init_database
from .database.repository import TradeRecordRepository

from .services.market_analytics import MarketAnalyticsService
from .services.advanced_analytics import AdvancedAnalyticsEngine
from .services.chart_insights import ChartInsightService
from .services.search_service import SearchService
from .services.report_generator import DynamicReportGenerator, AdvancedReportGenerator
from .services.report_store import ReportStore

from .api import create_app

__all__ = [
    # Configuration
    'TransDataConfig',
    'default_config',

    # Database
    'TradeRecord',
    'TradeRecordRepository',
    'init_database',

    # Services
    'MarketAnalyticsService',
    'AdvancedAnalyticsEngine',
    'ChartInsightService',
    'SearchService',
    'DynamicReportGenerator',
    'AdvancedReportGenerator',
    'ReportStore',

    # API
    'create_app',
]
