"""
TransDataNexus Services

Analytics:
- MarketAnalyticsService: Predictions, anomalies, supplier scoring
- AdvancedAnalyticsEngine: Market, competitive, trend and forecast analysis
- ChartInsightService: Insights for client-supplied chart data
- SearchService: Product search, quick summaries, platform analytics

Reports:
- DynamicReportGenerator / AdvancedReportGenerator: Report assembly
- PdfReportBuilder / PptxReportBuilder: Document rendering
- ReportStore: Generated files and metadata sidecars

Infrastructure:
- TradeCache: Flask-Caching wrapper
"""

from .cache_service import TradeCache, generate_cache_key
from .market_analytics import MarketAnalyticsService, empty_analytics
from .advanced_analytics import AdvancedAnalyticsEngine
from .chart_insights import ChartInsightService
from .search_service import SearchService, CachedPayload
from .report_schema import (
    SECTION_TEMPLATES,
    REPORT_TYPE_CONFIGS,
    REPORT_TYPES,
    ReportConfig,
    SectionTemplate,
    create_report_config,
    custom_sections_from_names,
)
from .report_store import ReportStore, StoredFile
from .document_builder import DocumentResult, PdfReportBuilder, PptxReportBuilder
from .report_generator import DynamicReportGenerator, AdvancedReportGenerator, calculate_total_pages

__all__ = [
    # Analytics
    'MarketAnalyticsService',
    'empty_analytics',
    'AdvancedAnalyticsEngine',
    'ChartInsightService',
    'SearchService',
    'CachedPayload',

    # Report configuration
    'SECTION_TEMPLATES',
    'REPORT_TYPE_CONFIGS',
    'REPORT_TYPES',
    'ReportConfig',
    'SectionTemplate',
    'create_report_config',
    'custom_sections_from_names',

    # Report output
    'DynamicReportGenerator',
    'AdvancedReportGenerator',
    'calculate_total_pages',
    'DocumentResult',
    'PdfReportBuilder',
    'PptxReportBuilder',
    'ReportStore',
    'StoredFile',

    # Infrastructure
    'TradeCache',
    'generate_cache_key',
]
