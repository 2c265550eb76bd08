"""
Report Generators

DynamicReportGenerator assembles configurable multi-section reports from
the advanced analytics engine and renders them as HTML-ready JSON, PDF or
PowerPoint. AdvancedReportGenerator produces the fixed two-section report
used by the advanced report endpoint.
"""

import base64
import logging
import math
import re
import time
from datetime import timedelta
from typing import Dict, List, Optional

from ..config.settings import TransDataConfig, default_config
from ..exceptions import TransDataError, ValidationError
from ..utils.formatting import safe_filename, format_plain_number
from .advanced_analytics import AdvancedAnalyticsEngine
from .document_builder import PdfReportBuilder, PptxReportBuilder, DocumentResult
from .report_schema import ReportConfig, SectionTemplate, REPORT_TYPES
from .report_store import ReportStore, file_extension, to_iso, utc_now

logger = logging.getLogger(__name__)


GENERATOR_VERSION = '2.0.0'
GENERATED_BY = 'Dynamic AI Report Generator'

FEATURES = [
    'AI-powered insights and recommendations',
    'Configurable report sections',
    'Multiple report types',
    'Advanced analytics and forecasting',
    'PDF, PowerPoint and HTML output',
]


def calculate_total_pages(sections: List[Dict]) -> int:
    """Two base pages per section, one per three insights, one per two charts"""
    total = 0
    for section in sections:
        total += 2
        total += math.ceil(len(section.get('aiInsights') or []) / 3)
        total += math.ceil(len(section.get('visualizations') or []) / 2)
    return total


def _epoch_ms() -> int:
    return int(time.time() * 1000)


def _high_impact(insights: List[Dict]) -> List[Dict]:
    return [insight for insight in insights if insight.get('impact') == 'high']


# =============================================================================
# DYNAMIC REPORTS
# =============================================================================

class DynamicReportGenerator:
    """
    Builds configurable reports section by section

    Usage:
        config = create_report_config("paracetamol", "comprehensive", format="pdf")
        engine = AdvancedAnalyticsEngine.load("paracetamol", repository)
        response = DynamicReportGenerator(store).generate(config, engine)
    """

    def __init__(self, store: ReportStore, config: TransDataConfig = None):
        self.store = store
        self.config = config or default_config
        self.pdf_builder = PdfReportBuilder(self.config.reports)
        self.pptx_builder = PptxReportBuilder(self.config.reports)

    @staticmethod
    def describe() -> Dict:
        """Payload for GET on the generator endpoint"""
        return {
            'message': 'Dynamic Report Generator API',
            'version': GENERATOR_VERSION,
            'features': FEATURES,
            'reportTypes': REPORT_TYPES,
        }

    # =========================================================================
    # REPORT ASSEMBLY
    # =========================================================================

    def build_report(self, report_config: ReportConfig, engine: AdvancedAnalyticsEngine) -> Dict:
        """
        Run the analysis and assemble every configured section

        Returns:
            Report dictionary {reportId, searchTerm, reportType, format,
            config, sections, summary, metadata}
        """
        analysis = engine.run_comprehensive_analysis()
        sections = [self.build_section(template, report_config, analysis, engine)
                    for template in report_config.sections]

        now = utc_now()
        return {
            'reportId': report_config.report_id,
            'searchTerm': report_config.search_term,
            'reportType': report_config.report_type,
            'format': report_config.format,
            'config': report_config.to_dict(),
            'sections': sections,
            'summary': {
                'totalSections': len(sections),
                'totalPages': calculate_total_pages(sections),
                'totalDataPoints': analysis['metrics']['totalTransactions'],
                'aiInsightsCount': len(analysis['insights']),
                'visualizationsCount': len(analysis['visualizations']),
                'generationTime': _epoch_ms(),
            },
            'metadata': {
                'createdAt': to_iso(now),
                'expiresAt': to_iso(now + timedelta(hours=self.config.reports.expiry_hours)),
                'version': GENERATOR_VERSION,
                'generatedBy': GENERATED_BY,
            },
        }

    def build_section(self, template: SectionTemplate, report_config: ReportConfig,
                      analysis: Dict, engine: AdvancedAnalyticsEngine) -> Dict:
        logger.debug(f"Generating section: {template.title}")
        ai_settings = report_config.ai_settings
        max_charts = report_config.visualization_settings.max_charts_per_section

        insights = []
        if template.ai_insights and ai_settings.enable_insights:
            insights = [
                insight for insight in analysis['insights']
                if insight['confidence'] >= ai_settings.confidence_threshold
            ][:ai_settings.max_insights_per_section]

        confidence = sum(i['confidence'] for i in insights) / len(insights) if insights else 0

        return {
            'sectionId': template.id,
            'title': template.title,
            'content': self.section_content(template, report_config, analysis, engine),
            'analytics': analysis['metrics'],
            'visualizations': analysis['visualizations'][:max_charts],
            'aiInsights': insights,
            'metadata': {
                'dataPoints': analysis['metrics']['totalTransactions'],
                'timeRange': report_config.data_filters.get('dateRange') or 'All available data',
                'confidence': confidence,
                'lastUpdated': to_iso(utc_now()),
            },
        }

    def section_content(self, template: SectionTemplate, report_config: ReportConfig,
                        analysis: Dict, engine: AdvancedAnalyticsEngine):
        builders = {
            'executive': lambda: self.executive_summary(analysis, report_config.search_term),
            'market': lambda: self.market_intelligence(analysis, engine),
            'competitive': lambda: self.competitive_analysis(engine),
            'trend': lambda: self.trend_analysis(analysis, engine),
            'regional': lambda: self.regional_analysis(engine),
            'regulatory': self.regulatory_analysis,
            'supply-chain': lambda: self.supply_chain_analysis(analysis),
            'pricing': lambda: self.pricing_analysis(analysis, engine),
            'ai-insights': lambda: self.ai_insights_section(analysis),
            'strategic': lambda: self.strategic_recommendations(analysis),
            'appendix': lambda: self.appendices(analysis),
        }
        builder = builders.get(template.type)
        if builder is None:
            return self.custom_section(template, analysis)
        return builder()

    # =========================================================================
    # SECTION CONTENT
    # =========================================================================

    def executive_summary(self, analysis: Dict, search_term: str) -> Dict:
        metrics = analysis['metrics']
        growth = metrics['marketGrowth']
        total_value = format_plain_number(metrics['totalValue'])

        if growth > 10:
            outlook = 'strong'
        elif growth > 0:
            outlook = 'moderate'
        else:
            outlook = 'declining'

        index = metrics['hhi']
        if index > self.config.analytics.hhi_high:
            risk = 'high'
        elif index > self.config.analytics.hhi_moderate:
            risk = 'moderate'
        else:
            risk = 'low'

        return {
            'keyFindings': [
                f"Market size: ${total_value} USD",
                f"Growth rate: {growth:.1f}% annually",
                f"Price volatility: {metrics['priceVolatility'] * 100:.1f}%",
                f"Geographic diversity: {metrics['geographicDiversity'] * 100:.1f}%",
            ],
            'marketOverview': (f"The market for {search_term} shows {outlook} growth "
                               f"with {total_value} USD in total value."),
            'strategicRecommendations': [
                insight['recommendations'][0] for insight in _high_impact(analysis['insights'])[:3]
            ],
            'riskAssessment': f"Market concentration (HHI: {index:.0f}) indicates {risk} concentration risk.",
        }

    @staticmethod
    def market_intelligence(analysis: Dict, engine: AdvancedAnalyticsEngine) -> Dict:
        market = engine.analyze_market_size()
        growth = market['marketGrowth']
        if growth > 10:
            maturity = 'Growing'
        elif growth > 0:
            maturity = 'Stable'
        else:
            maturity = 'Declining'

        return {
            'marketSize': market['totalValue'],
            'growthRate': growth,
            'marketMaturity': maturity,
            'keyDrivers': [
                'Increasing global demand for pharmaceutical products',
                'Expanding healthcare infrastructure in emerging markets',
                'Rising chronic disease prevalence',
                'Technological advancements in drug development',
            ],
            'barriers': [
                'Stringent regulatory requirements',
                'High compliance costs',
                'Supply chain disruptions',
                'Intellectual property challenges',
            ],
            'opportunities': [
                insight['description'] for insight in analysis['insights']
                if insight['type'] == 'opportunity'
            ],
            'yearData': market['temporalTrends'],
        }

    @staticmethod
    def competitive_analysis(engine: AdvancedAnalyticsEngine) -> Dict:
        competitive = engine.analyze_competitive_landscape()
        return {
            'topSuppliers': competitive['topSuppliers'],
            'topBuyers': competitive['topBuyers'],
            'marketConcentration': competitive['marketConcentration'],
            'competitiveIntensity': competitive['competitiveIntensity'],
            'marketShare': [
                {'name': s['name'], 'share': s['marketShare'], 'value': s['totalValue']}
                for s in competitive['topSuppliers']
            ],
        }

    @staticmethod
    def trend_analysis(analysis: Dict, engine: AdvancedAnalyticsEngine) -> Dict:
        trends = engine.analyze_trends()
        forecasts = engine.generate_forecasts()
        return {
            'historical': analysis['trends'],
            'current': trends['shortTerm'],
            'forecast': {
                'shortTerm': trends['shortTerm'],
                'longTerm': trends['longTerm'],
                'predictions': forecasts['predictions'],
                'scenarios': forecasts['scenarios'],
            },
            'seasonality': trends['seasonality'],
            'cyclicality': trends['cyclicality'],
        }

    @staticmethod
    def regional_analysis(engine: AdvancedAnalyticsEngine) -> List[Dict]:
        return [
            {
                'region': 'Global',
                'marketShare': 100,
                'growthRate': engine.growth_rate(),
                'keyPlayers': [s['name'] for s in engine.analyze_suppliers(limit=5)],
                'opportunities': ['Market expansion', 'Technology adoption', 'Regulatory harmonization'],
                'challenges': ['Supply chain complexity', 'Regulatory variations', 'Currency fluctuations'],
            }
        ]

    @staticmethod
    def regulatory_analysis() -> Dict:
        return {
            'currentRegulations': [
                'Good Manufacturing Practice (GMP) requirements',
                'International Council for Harmonisation (ICH) guidelines',
                'FDA regulations for pharmaceutical imports',
                'EU pharmaceutical regulations',
            ],
            'upcomingChanges': [
                'Digital transformation in regulatory submissions',
                'Enhanced pharmacovigilance requirements',
                'Supply chain transparency regulations',
            ],
            'complianceRequirements': [
                'Documentation and record keeping',
                'Quality assurance systems',
                'Risk management procedures',
            ],
            'impactAssessment': 'Regulatory changes may increase compliance costs by 15-20% over the next 3 years.',
        }

    @staticmethod
    def supply_chain_analysis(analysis: Dict) -> Dict:
        return {
            'routes': [
                {
                    'origin': 'India',
                    'destination': 'Global',
                    'volume': analysis['metrics']['totalValue'],
                    'efficiency': 0.85,
                    'risks': ['Port congestion', 'Weather disruptions', 'Regulatory delays'],
                }
            ],
            'bottlenecks': [
                'Port capacity limitations',
                'Customs clearance delays',
                'Transportation infrastructure gaps',
            ],
            'optimizationOpportunities': [
                'Digital documentation systems',
                'Predictive analytics for demand forecasting',
                'Multi-modal transportation networks',
            ],
        }

    @staticmethod
    def pricing_analysis(analysis: Dict, engine: AdvancedAnalyticsEngine) -> Dict:
        market = engine.analyze_market_size()
        leaders = engine.analyze_suppliers(limit=1)
        leader = leaders[0] if leaders else {'name': 'Top Supplier', 'marketShare': 0.0}
        return {
            'priceTrends': analysis['trends'],
            'priceVolatility': market['priceVolatility'],
            'competitivePricing': [
                {
                    'supplier': leader['name'],
                    'price': market['averagePrice'],
                    'marketShare': leader['marketShare'],
                }
            ],
            'pricingStrategies': ['Value-based pricing', 'Competitive pricing', 'Dynamic pricing models'],
        }

    @staticmethod
    def ai_insights_section(analysis: Dict) -> Dict:
        recommendations = [
            recommendation
            for insight in _high_impact(analysis['insights'])
            for recommendation in insight['recommendations']
        ]
        return {
            'insights': analysis['insights'],
            'patterns': analysis['patterns'],
            'anomalies': analysis['anomalies'],
            'predictions': analysis['predictions'],
            'recommendations': recommendations[:10],
        }

    @staticmethod
    def strategic_recommendations(analysis: Dict) -> Dict:
        return {
            'immediate': [
                insight['recommendations'][0] for insight in _high_impact(analysis['insights'])[:3]
            ],
            'shortTerm': [
                'Optimize supply chain efficiency',
                'Enhance quality assurance systems',
                'Develop strategic partnerships',
            ],
            'longTerm': [
                'Invest in digital transformation',
                'Expand geographic presence',
                'Develop innovative product portfolio',
            ],
            'implementation': [
                'Establish cross-functional teams',
                'Set up monitoring and evaluation systems',
                'Create risk mitigation strategies',
            ],
        }

    @staticmethod
    def appendices(analysis: Dict) -> Dict:
        return {
            'methodology': ('This report uses advanced AI analytics and comprehensive data analysis '
                            'to provide market insights.'),
            'dataSources': [
                'Pharmaceutical trade databases',
                'Regulatory databases',
                'Market research reports',
                'Industry publications',
            ],
            'definitions': {
                'Market Size': 'Total value of transactions in USD',
                'Growth Rate': 'Annual percentage change in market value',
                'HHI': 'Herfindahl-Hirschman Index for market concentration',
                'Price Volatility': 'Standard deviation of prices relative to mean',
            },
            'charts': analysis['visualizations'],
        }

    @staticmethod
    def custom_section(template: SectionTemplate, analysis: Dict) -> Dict:
        return {
            'title': template.title,
            'content': 'Custom section content based on configuration',
            'data': analysis['metrics'],
            'insights': analysis['insights'][:5],
        }

    # =========================================================================
    # OUTPUT
    # =========================================================================

    def render(self, report: Dict, output_path, format_name: str) -> DocumentResult:
        title = f"Dynamic AI Report: {report['searchTerm']}"
        if format_name == 'pdf':
            return self.pdf_builder.build(report, output_path, title=title)
        return self.pptx_builder.build(report, output_path, title=title)

    def generate(self, report_config: ReportConfig, engine: AdvancedAnalyticsEngine) -> Dict:
        """
        Build the report and, for document formats, write it to the store

        Returns:
            HTML: {success, report, format, message}
            PDF/PPT: {success, reportId, fileName, downloadUrl, viewUrl, metadata}

        Raises:
            TransDataError: Document rendering failed
        """
        logger.info(f"Generating dynamic report for: {report_config.search_term}, "
                     f"Type: {report_config.report_type}, Format: {report_config.format}")

        report = self.build_report(report_config, engine)

        if report_config.format == 'html':
            return {
                'success': True,
                'report': report,
                'format': 'html',
                'message': 'Report data generated successfully for HTML rendering',
            }

        report_id = report_config.report_id
        extension = file_extension(report_config.format)
        file_name = f"{safe_filename(report_config.search_term)}_Dynamic_Report_{report_id}.{extension}"

        result = self.render(report, self.store.file_path(report_id, extension), report_config.format)
        if not result.success:
            raise TransDataError('Failed to generate dynamic report', details=result.error_message)

        self.store.save(report_id, {
            'reportId': report_id,
            'searchTerm': report_config.search_term,
            'reportType': report_config.report_type,
            'format': report_config.format,
            'fileName': file_name,
            'report': report,
            'createdAt': report['metadata']['createdAt'],
            'expiresAt': report['metadata']['expiresAt'],
        })

        logger.info(f"Dynamic report generated successfully: {file_name}")

        summary = report['summary']
        return {
            'success': True,
            'reportId': report_id,
            'fileName': file_name,
            'downloadUrl': f"/api/download-report/{report_id}",
            'viewUrl': f"/api/view-report/{report_id}",
            'metadata': {
                'searchTerm': report_config.search_term,
                'reportType': report_config.report_type,
                'format': report_config.format,
                'totalSections': summary['totalSections'],
                'totalPages': summary['totalPages'],
                'aiInsightsCount': summary['aiInsightsCount'],
                'generationTime': summary['generationTime'],
            },
        }


# =============================================================================
# ADVANCED REPORTS
# =============================================================================

ADVANCED_FORMATS = ('pdf', 'ppt', 'pptx')


def file_id_for(file_name: str) -> str:
    """Base64 of the file name with non-alphanumeric characters removed"""
    encoded = base64.b64encode(file_name.encode('utf-8')).decode('ascii')
    return re.sub(r'[^a-zA-Z0-9]', '', encoded)


class AdvancedReportGenerator:
    """
    Two-section report (Executive Summary, Market Intelligence) kept for 30 days
    """

    def __init__(self, store: ReportStore, config: TransDataConfig = None):
        self.store = store
        self.config = config or default_config
        self.pdf_builder = PdfReportBuilder(self.config.reports)
        self.pptx_builder = PptxReportBuilder(self.config.reports)

    @staticmethod
    def describe() -> Dict:
        return {
            'message': 'Advanced Report Generator API',
            'endpoints': {'POST': 'Generate comprehensive reports in PDF or PPT format'},
        }

    @staticmethod
    def validate(search_term: Optional[str], format_name: Optional[str]):
        if not search_term:
            raise ValidationError('Search term is required')
        if format_name not in ADVANCED_FORMATS:
            raise ValidationError('Unsupported format')

    def build_report(self, search_term: str, report_type: str, engine: AdvancedAnalyticsEngine) -> Dict:
        analysis = engine.run_comprehensive_analysis()
        metrics = analysis['metrics']
        intelligence = engine.market_intelligence()
        competition = engine.competitive_analysis()
        now = utc_now()

        def metadata(confidence: float) -> Dict:
            return {
                'dataPoints': metrics['totalTransactions'],
                'timeRange': 'Latest available data',
                'confidence': confidence,
                'lastUpdated': to_iso(now),
            }

        sections = [
            {
                'sectionId': 'executive-summary',
                'title': 'Executive Summary',
                'content': (f"Comprehensive analysis of {search_term} market with total value of "
                            f"${format_plain_number(metrics['totalValue'])} and "
                            f"{format_plain_number(metrics['totalVolume'])} units traded."),
                'analytics': [metrics],
                'visualizations': analysis['visualizations'],
                'aiInsights': analysis['insights'],
                'metadata': metadata(0.85),
            },
            {
                'sectionId': 'market-intelligence',
                'title': 'Market Intelligence',
                'content': {
                    'overview': f"Market analysis reveals key trends and patterns in the {search_term} sector.",
                    'uniqueSuppliers': intelligence['uniqueSuppliers'],
                    'uniqueBuyers': intelligence['uniqueBuyers'],
                    'priceGrowthRate': intelligence['growthRate'],
                    'marketStructure': competition['marketStructure'],
                    'competitiveIntensity': competition['competitiveIntensity'],
                    'hhi': competition['hhi'],
                    'topThreeShare': competition['marketConcentration'],
                    'topSuppliers': intelligence['topSuppliers'],
                    'topCountries': intelligence['topCountries'],
                    'priceTrend': intelligence['priceTrend'],
                },
                'analytics': analysis['trends'],
                'visualizations': analysis['visualizations'],
                'aiInsights': analysis['insights'],
                'metadata': metadata(0.80),
            },
        ]

        return {
            'searchTerm': search_term,
            'reportType': report_type,
            'sections': sections,
            'summary': {
                'totalSections': 2,
                'totalPages': 1,
                'totalDataPoints': metrics['totalTransactions'],
                'aiInsightsCount': len(analysis['insights']),
                'visualizationsCount': len(analysis['visualizations']),
                'generationTime': _epoch_ms(),
            },
            'metadata': {
                'createdAt': to_iso(now),
                'expiresAt': to_iso(now + timedelta(days=self.config.reports.advanced_expiry_days)),
                'version': '1.0.0',
                'generatedBy': 'Advanced AI Analytics Engine',
            },
        }

    def generate(self, search_term: str, engine: AdvancedAnalyticsEngine,
                 report_type: str = 'comprehensive', format_name: str = 'pdf') -> Dict:
        """
        Build, render and store an advanced report

        Raises:
            ValidationError: Missing search term or unsupported format
            TransDataError: Document rendering failed
        """
        self.validate(search_term, format_name)

        report = self.build_report(search_term, report_type, engine)
        extension = file_extension(format_name)
        file_name = f"Dynamic_Report_{search_term}_{_epoch_ms()}.{extension}"
        file_id = file_id_for(file_name)

        title = f"Dynamic AI Report: {search_term}"
        output_path = self.store.file_path(file_id, extension)
        if extension == 'pdf':
            result = self.pdf_builder.build(report, output_path, title=title)
        else:
            result = self.pptx_builder.build(report, output_path, title=title,
                                             subtitle='Generated by TransData Analytics Platform')
        if not result.success:
            raise TransDataError('Failed to generate dynamic report', details=result.error_message)

        self.store.save(file_id, {
            'fileId': file_id,
            'fileName': file_name,
            'format': format_name,
            'searchTerm': search_term,
            'reportType': report_type,
            'report': report,
            'createdAt': report['metadata']['createdAt'],
            'expiresAt': report['metadata']['expiresAt'],
        })

        return {
            'success': True,
            'fileId': file_id,
            'fileName': file_name,
            'downloadUrl': f"/api/download-report/{file_id}",
            'viewUrl': f"/api/view-report/{file_id}",
            'message': f"Dynamic {format_name.upper()} report generated successfully",
        }
