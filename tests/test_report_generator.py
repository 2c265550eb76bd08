"""
Tests for dynamic and advanced report generation

Run with:
    pytest tests/test_report_generator.py -v
"""

import base64

import pytest

from transdata_nexus.exceptions import TransDataError, ValidationError
from transdata_nexus.services.advanced_analytics import AdvancedAnalyticsEngine
from transdata_nexus.services.document_builder import DocumentResult
from transdata_nexus.services.report_generator import (
    AdvancedReportGenerator,
    DynamicReportGenerator,
    calculate_total_pages,
    file_id_for,
)
from transdata_nexus.services.report_schema import REPORT_TYPES, create_report_config, custom_sections_from_names
from transdata_nexus.services.report_store import ReportStore


class TestHelpers:
    """Tests for page estimates and file ids"""

    def test_total_pages(self):
        """Test two pages per section plus insight and chart pages"""
        sections = [
            {'aiInsights': [1, 2, 3, 4], 'visualizations': [1, 2, 3]},
            {'aiInsights': [], 'visualizations': []},
        ]
        assert calculate_total_pages(sections) == 8

    def test_file_id(self):
        file_id = file_id_for('Dynamic_Report_paracetamol_1700000000000.pdf')
        encoded = base64.b64encode(b'Dynamic_Report_paracetamol_1700000000000.pdf').decode()

        assert file_id.isalnum()
        assert file_id == encoded.replace('+', '').replace('/', '').replace('=', '')

    def test_describe(self):
        info = DynamicReportGenerator.describe()

        assert info['message'] == 'Dynamic Report Generator API'
        assert info['version'] == '2.0.0'
        assert info['reportTypes'] == REPORT_TYPES


class TestDynamicReport:
    """Tests for report assembly"""

    @pytest.fixture(autouse=True)
    def _generator(self, tmp_path, config, paracetamol_records):
        self.store = ReportStore(tmp_path / 'reports')
        self.generator = DynamicReportGenerator(self.store, config)
        self.engine = AdvancedAnalyticsEngine('paracetamol', paracetamol_records, config)

    def test_comprehensive_summary(self):
        report = self.generator.build_report(create_report_config('paracetamol', 'comprehensive'), self.engine)

        assert len(report['sections']) == 11
        assert report['summary']['totalSections'] == 11
        assert report['summary']['totalDataPoints'] == 6
        assert report['summary']['aiInsightsCount'] == 2
        assert report['summary']['visualizationsCount'] == 3
        assert report['summary']['totalPages'] == calculate_total_pages(report['sections'])
        assert report['metadata']['version'] == '2.0.0'
        assert report['metadata']['generatedBy'] == 'Dynamic AI Report Generator'

    def test_section_insights_filtered_by_confidence(self):
        """Test market-analysis keeps only insights at or above 0.85"""
        report = self.generator.build_report(create_report_config('paracetamol', 'market-analysis'), self.engine)
        section = report['sections'][0]

        assert [i['title'] for i in section['aiInsights']] == ['High Market Concentration Risk']
        assert section['metadata']['confidence'] == 0.9
        assert section['metadata']['timeRange'] == 'All available data'

    def test_appendix_without_insights(self):
        report = self.generator.build_report(create_report_config('paracetamol', 'comprehensive'), self.engine)
        appendix = report['sections'][-1]

        assert appendix['sectionId'] == 'appendices'
        assert appendix['aiInsights'] == []
        assert appendix['metadata']['confidence'] == 0

    def test_overrides_applied(self):
        config = create_report_config('paracetamol', 'trend-forecast')
        config.apply_overrides(
            data_filters={'dateRange': '2023-2024'},
            visualization_settings={'maxChartsPerSection': 1},
            ai_settings={'enableInsights': False},
        )
        report = self.generator.build_report(config, self.engine)

        for section in report['sections']:
            assert len(section['visualizations']) == 1
            assert section['aiInsights'] == []
            assert section['metadata']['timeRange'] == '2023-2024'

    def test_executive_summary(self):
        report = self.generator.build_report(create_report_config('paracetamol', 'comprehensive'), self.engine)
        content = report['sections'][0]['content']

        assert content['keyFindings'][0] == 'Market size: $58,000 USD'
        assert content['marketOverview'] == 'The market for paracetamol shows moderate growth with 58,000 USD in total value.'
        assert content['strategicRecommendations'] == ['Diversify supplier base']
        assert 'high concentration risk' in content['riskAssessment']

    def test_pricing_names_market_leader(self):
        report = self.generator.build_report(create_report_config('paracetamol', 'comprehensive'), self.engine)
        pricing = next(s for s in report['sections'] if s['sectionId'] == 'pricing-analysis')

        leader = pricing['content']['competitivePricing'][0]
        assert leader['supplier'] == 'Acme Pharma Pvt Ltd'
        assert leader['price'] == pytest.approx(12.0)

    def test_custom_section(self):
        config = create_report_config('paracetamol', 'custom', custom_sections_from_names(['Buyers']))
        report = self.generator.build_report(config, self.engine)
        content = report['sections'][0]['content']

        assert content['title'] == 'Buyers'
        assert content['content'] == 'Custom section content based on configuration'
        assert content['data']['totalTransactions'] == 6

    def test_html_not_stored(self):
        response = self.generator.generate(
            create_report_config('paracetamol', 'market-analysis', format='html'), self.engine
        )

        assert response['success'] is True
        assert response['format'] == 'html'
        assert response['report']['searchTerm'] == 'paracetamol'
        assert not (self.store.directory.exists() and any(self.store.directory.iterdir()))

    def test_pdf_generated_and_stored(self):
        config = create_report_config('para cetamol', 'market-analysis', format='pdf')
        response = self.generator.generate(config, self.engine)

        report_id = config.report_id
        assert response['reportId'] == report_id
        assert response['fileName'] == f"para_cetamol_Dynamic_Report_{report_id}.pdf"
        assert response['downloadUrl'] == f"/api/download-report/{report_id}"
        assert response['metadata']['totalSections'] == 5
        assert self.store.file_path(report_id, 'pdf').stat().st_size > 0
        assert self.store.view(report_id)['report']['reportId'] == report_id

    def test_render_failure(self, monkeypatch):
        monkeypatch.setattr(self.generator.pptx_builder, 'build',
                            lambda *args, **kwargs: DocumentResult(success=False, error_message='disk full'))
        config = create_report_config('paracetamol', 'market-analysis', format='ppt')

        with pytest.raises(TransDataError) as exc_info:
            self.generator.generate(config, self.engine)

        assert exc_info.value.message == 'Failed to generate dynamic report'
        assert exc_info.value.details == 'disk full'


class TestAdvancedReport:
    """Tests for the two-section advanced report"""

    @pytest.fixture(autouse=True)
    def _generator(self, tmp_path, config, paracetamol_records):
        self.store = ReportStore(tmp_path / 'reports')
        self.generator = AdvancedReportGenerator(self.store, config)
        self.engine = AdvancedAnalyticsEngine('paracetamol', paracetamol_records, config)

    def test_validation(self):
        with pytest.raises(ValidationError) as exc_info:
            AdvancedReportGenerator.validate('', 'pdf')
        assert exc_info.value.message == 'Search term is required'

        with pytest.raises(ValidationError) as exc_info:
            AdvancedReportGenerator.validate('paracetamol', 'html')
        assert exc_info.value.message == 'Unsupported format'

    def test_sections(self):
        report = self.generator.build_report('paracetamol', 'comprehensive', self.engine)

        assert [s['title'] for s in report['sections']] == ['Executive Summary', 'Market Intelligence']
        assert report['sections'][0]['content'] == (
            'Comprehensive analysis of paracetamol market with total value of $58,000 and 4,600 units traded.'
        )
        assert report['sections'][1]['content']['marketStructure'] == 'Highly Concentrated'
        assert report['summary']['totalPages'] == 1
        assert report['metadata']['generatedBy'] == 'Advanced AI Analytics Engine'

    def test_generate_pptx(self):
        response = self.generator.generate('paracetamol', self.engine, format_name='pptx')

        assert response['success'] is True
        assert response['message'] == 'Dynamic PPTX report generated successfully'
        assert response['fileName'].startswith('Dynamic_Report_paracetamol_')
        assert response['fileId'] == file_id_for(response['fileName'])

        stored = self.store.locate_file(response['fileId'])
        assert stored.file_name == response['fileName']
        assert stored.size > 0
