"""
Report Schema

Section templates, report type presets and the per-request report
configuration used by the dynamic report generator.
"""

import math
import random
import string
import time
from dataclasses import dataclass, field, fields, asdict, replace
from typing import Dict, List, Optional

from ..exceptions import ValidationError


SECTION_TYPES = (
    'executive', 'market', 'competitive', 'trend', 'regional', 'regulatory',
    'supply-chain', 'pricing', 'ai-insights', 'strategic', 'appendix', 'custom',
)

REPORT_FORMATS = ('pdf', 'ppt', 'pptx', 'html')


# =============================================================================
# SECTIONS
# =============================================================================

@dataclass(frozen=True)
class SectionTemplate:
    """One configurable report section"""
    id: str
    title: str
    type: str
    priority: int
    is_required: bool
    is_expandable: bool
    data_source: str
    analytics: List[str] = field(default_factory=list)
    visualizations: List[str] = field(default_factory=list)
    ai_insights: bool = True
    max_entries: Optional[int] = None

    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'title': self.title,
            'type': self.type,
            'priority': self.priority,
            'isRequired': self.is_required,
            'isExpandable': self.is_expandable,
            'maxEntries': self.max_entries,
            'dataSource': self.data_source,
            'analytics': list(self.analytics),
            'visualizations': list(self.visualizations),
            'aiInsights': self.ai_insights,
        }


SECTION_TEMPLATES: Dict[str, SectionTemplate] = {
    'executive': SectionTemplate(
        'executive-summary', 'Executive Summary', 'executive', 1, True, False, 'aggregated',
        ['market-size', 'growth-rate', 'key-findings'], ['summary-chart', 'key-metrics'],
    ),
    'market_intelligence': SectionTemplate(
        'market-intelligence', 'Market Intelligence', 'market', 2, True, True, 'market-data',
        ['market-size', 'growth-rate', 'maturity', 'drivers', 'barriers'],
        ['market-trends', 'growth-chart', 'drivers-analysis'],
    ),
    'competitive_landscape': SectionTemplate(
        'competitive-landscape', 'Competitive Landscape', 'competitive', 3, True, True, 'supplier-buyer-data',
        ['market-share', 'concentration', 'competitive-intensity'],
        ['market-share-chart', 'competitive-map', 'hhi-analysis'],
    ),
    'trend_analysis': SectionTemplate(
        'trend-analysis', 'Trend Analysis & Forecasting', 'trend', 4, True, True, 'historical-data',
        ['trend-patterns', 'seasonality', 'forecasting'],
        ['trend-charts', 'forecast-models', 'seasonal-analysis'],
    ),
    'regional_analysis': SectionTemplate(
        'regional-analysis', 'Regional Market Analysis', 'regional', 5, False, True, 'geographic-data',
        ['regional-share', 'growth-by-region', 'opportunities'], ['regional-map', 'regional-comparison'],
    ),
    'regulatory_environment': SectionTemplate(
        'regulatory-environment', 'Regulatory Environment', 'regulatory', 6, False, True, 'regulatory-data',
        ['compliance-requirements', 'regulatory-changes'], ['regulatory-timeline', 'compliance-matrix'],
    ),
    'supply_chain_analysis': SectionTemplate(
        'supply-chain-analysis', 'Supply Chain Analysis', 'supply-chain', 7, False, True, 'logistics-data',
        ['route-efficiency', 'bottlenecks', 'optimization'], ['supply-chain-map', 'efficiency-chart'],
    ),
    'pricing_analysis': SectionTemplate(
        'pricing-analysis', 'Pricing Analysis', 'pricing', 8, False, True, 'pricing-data',
        ['price-trends', 'volatility', 'competitive-pricing'], ['price-charts', 'volatility-analysis'],
    ),
    'ai_insights': SectionTemplate(
        'ai-insights', 'AI-Powered Insights', 'ai-insights', 9, False, True, 'ai-analysis',
        ['anomaly-detection', 'pattern-recognition', 'predictions'], ['insight-charts', 'prediction-models'],
    ),
    'strategic_recommendations': SectionTemplate(
        'strategic-recommendations', 'Strategic Recommendations', 'strategic', 10, True, True,
        'strategic-analysis', ['opportunity-assessment', 'risk-analysis', 'implementation'],
        ['recommendation-matrix', 'timeline'],
    ),
    'appendices': SectionTemplate(
        'appendices', 'Appendices & Methodology', 'appendix', 11, False, True, 'methodology',
        ['data-sources', 'definitions', 'assumptions'], ['methodology-flow', 'data-quality'],
        ai_insights=False,
    ),
}


def custom_sections_from_names(names: List[str]) -> List[SectionTemplate]:
    """Turn user-supplied section titles into custom sections custom-0, custom-1, ..."""
    return [
        SectionTemplate(
            id=f"custom-{index}",
            title=name,
            type='custom',
            priority=index + 1,
            is_required=True,
            is_expandable=True,
            data_source='custom',
        )
        for index, name in enumerate(names)
    ]


# =============================================================================
# SETTINGS
# =============================================================================

@dataclass
class AISettings:
    enable_insights: bool = True
    enable_predictions: bool = True
    enable_anomaly_detection: bool = True
    enable_trend_analysis: bool = True
    confidence_threshold: float = 0.8
    max_insights_per_section: int = 10


@dataclass
class VisualizationSettings:
    chart_types: List[str] = field(default_factory=lambda: ['bar', 'line', 'pie', 'scatter', 'area'])
    color_scheme: str = 'pharma-blue'
    include_interactive: bool = True
    max_charts_per_section: int = 5


@dataclass
class ExportSettings:
    include_raw_data: bool = True
    include_methodology: bool = True
    include_sources: bool = True
    max_pages: Optional[int] = None


# Request keys (camelCase) -> dataclass attribute names
_SETTING_KEYS = {
    'enableInsights': 'enable_insights',
    'enablePredictions': 'enable_predictions',
    'enableAnomalyDetection': 'enable_anomaly_detection',
    'enableTrendAnalysis': 'enable_trend_analysis',
    'confidenceThreshold': 'confidence_threshold',
    'maxInsightsPerSection': 'max_insights_per_section',
    'chartTypes': 'chart_types',
    'colorScheme': 'color_scheme',
    'includeInteractive': 'include_interactive',
    'maxChartsPerSection': 'max_charts_per_section',
    'includeRawData': 'include_raw_data',
    'includeMethodology': 'include_methodology',
    'includeSources': 'include_sources',
    'maxPages': 'max_pages',
}


def _camel(name: str) -> str:
    head, *rest = name.split('_')
    return head + ''.join(part.capitalize() for part in rest)


def _settings_dict(settings) -> Dict:
    return {_camel(key): value for key, value in asdict(settings).items()}


def _coerce(key: str, expected, value):
    """Convert a request value to the declared type of a setting"""
    optional = expected == Optional[int]
    if value is None and optional:
        return None
    target = int if optional else expected

    if target is bool:
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.strip().lower() in ('true', 'false'):
            return value.strip().lower() == 'true'
    elif target in (int, float):
        if not isinstance(value, bool):
            try:
                number = float(value)
            except (TypeError, ValueError):
                number = None
            if number is not None and math.isfinite(number):
                if target is float:
                    return number
                if number.is_integer():
                    return int(number)
    elif target is str:
        if isinstance(value, str):
            return value
    elif isinstance(value, list) and all(isinstance(item, str) for item in value):
        return list(value)

    raise ValidationError(f"Invalid value for {key}", details=repr(value))


def _merge(settings, overrides: Optional[Dict]):
    """Copy of a settings dataclass with known request keys overridden"""
    if not overrides:
        return settings
    if not isinstance(overrides, dict):
        raise ValidationError('Report settings must be an object')
    types = {f.name: f.type for f in fields(settings)}
    changes = {}
    for key, value in overrides.items():
        attribute = _SETTING_KEYS.get(key, key)
        if attribute in types:
            changes[attribute] = _coerce(key, types[attribute], value)
    return replace(settings, **changes)


# =============================================================================
# REPORT TYPES
# =============================================================================

@dataclass(frozen=True)
class ReportTypeConfig:
    name: str
    description: str
    sections: List[SectionTemplate]
    ai_settings: AISettings


REPORT_TYPE_CONFIGS: Dict[str, ReportTypeConfig] = {
    'comprehensive': ReportTypeConfig(
        name='Comprehensive Global Report',
        description='Complete analysis covering all aspects of the market',
        sections=list(SECTION_TEMPLATES.values()),
        ai_settings=AISettings(confidence_threshold=0.8, max_insights_per_section=10),
    ),
    'market-analysis': ReportTypeConfig(
        name='Market Analysis Report',
        description='Focused market intelligence and analysis',
        sections=[
            SECTION_TEMPLATES['executive'],
            SECTION_TEMPLATES['market_intelligence'],
            SECTION_TEMPLATES['trend_analysis'],
            SECTION_TEMPLATES['regional_analysis'],
            SECTION_TEMPLATES['strategic_recommendations'],
        ],
        ai_settings=AISettings(enable_anomaly_detection=False, confidence_threshold=0.85,
                               max_insights_per_section=5),
    ),
    'competitive-intelligence': ReportTypeConfig(
        name='Competitive Intelligence Report',
        description='Deep dive into competitive landscape',
        sections=[
            SECTION_TEMPLATES['executive'],
            SECTION_TEMPLATES['competitive_landscape'],
            SECTION_TEMPLATES['market_intelligence'],
            SECTION_TEMPLATES['ai_insights'],
            SECTION_TEMPLATES['strategic_recommendations'],
        ],
        ai_settings=AISettings(enable_predictions=False, enable_trend_analysis=False,
                               confidence_threshold=0.9, max_insights_per_section=8),
    ),
    'trend-forecast': ReportTypeConfig(
        name='Trend Forecast Report',
        description='Future-focused trend analysis and predictions',
        sections=[
            SECTION_TEMPLATES['executive'],
            SECTION_TEMPLATES['trend_analysis'],
            SECTION_TEMPLATES['ai_insights'],
            SECTION_TEMPLATES['strategic_recommendations'],
        ],
        ai_settings=AISettings(confidence_threshold=0.75, max_insights_per_section=15),
    ),
}

REPORT_TYPES = list(REPORT_TYPE_CONFIGS) + ['custom']


# =============================================================================
# REPORT CONFIGURATION
# =============================================================================

def generate_report_id() -> str:
    """report_{epoch ms}_{9 base-36 chars}"""
    suffix = ''.join(random.choices(string.ascii_lowercase + string.digits, k=9))
    return f"report_{int(time.time() * 1000)}_{suffix}"


@dataclass
class ReportConfig:
    """Configuration for one generated report"""
    report_id: str
    search_term: str
    report_type: str
    format: str = 'pdf'
    sections: List[SectionTemplate] = field(default_factory=list)
    data_filters: Dict = field(default_factory=dict)
    ai_settings: AISettings = field(default_factory=AISettings)
    visualization_settings: VisualizationSettings = field(default_factory=VisualizationSettings)
    export_settings: ExportSettings = field(default_factory=ExportSettings)

    def apply_overrides(self, data_filters: Optional[Dict] = None, ai_settings: Optional[Dict] = None,
                        visualization_settings: Optional[Dict] = None,
                        export_settings: Optional[Dict] = None) -> 'ReportConfig':
        """Merge request-supplied settings over the preset values"""
        if data_filters:
            if not isinstance(data_filters, dict):
                raise ValidationError('dataFilters must be an object')
            self.data_filters = {**self.data_filters, **data_filters}
        self.ai_settings = _merge(self.ai_settings, ai_settings)
        self.visualization_settings = _merge(self.visualization_settings, visualization_settings)
        self.export_settings = _merge(self.export_settings, export_settings)
        return self

    def to_dict(self) -> Dict:
        return {
            'reportId': self.report_id,
            'searchTerm': self.search_term,
            'reportType': self.report_type,
            'format': self.format,
            'sections': [section.to_dict() for section in self.sections],
            'dataFilters': dict(self.data_filters),
            'aiSettings': _settings_dict(self.ai_settings),
            'visualizationSettings': _settings_dict(self.visualization_settings),
            'exportSettings': _settings_dict(self.export_settings),
        }


def create_report_config(search_term: str, report_type: str,
                         custom_sections: Optional[List[SectionTemplate]] = None,
                         format: str = 'pdf') -> ReportConfig:
    """
    Build the configuration for a report type

    Args:
        search_term: Product searched
        report_type: One of REPORT_TYPES
        custom_sections: Replace the preset sections when given
        format: pdf, ppt, pptx or html

    Raises:
        ValidationError: Unknown report type or format
    """
    if report_type not in REPORT_TYPES:
        raise ValidationError(f"Unknown report type: {report_type}")
    if format not in REPORT_FORMATS:
        raise ValidationError(f"Unsupported format: {format}")

    if report_type == 'custom':
        sections = list(custom_sections or [])
        ai_settings = AISettings()
    else:
        preset = REPORT_TYPE_CONFIGS[report_type]
        sections = list(custom_sections) if custom_sections else list(preset.sections)
        ai_settings = replace(preset.ai_settings)

    return ReportConfig(
        report_id=generate_report_id(),
        search_term=search_term,
        report_type=report_type,
        format=format,
        sections=sections,
        ai_settings=ai_settings,
    )
