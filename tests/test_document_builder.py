"""
Tests for PDF and PowerPoint rendering

Run with:
    pytest tests/test_document_builder.py -v
"""

from matplotlib.backends.backend_pdf import PdfPages
from pptx import Presentation

from transdata_nexus.config.settings import ReportOutputConfig
from transdata_nexus.services.document_builder import (
    PdfReportBuilder,
    PptxReportBuilder,
    collect_charts,
    content_lines,
    section_metadata_line,
    summary_rows,
)


SAMPLE_REPORT = {
    'searchTerm': 'paracetamol',
    'reportType': 'market-analysis',
    'sections': [
        {
            'sectionId': 'executive-summary',
            'title': 'Executive Summary',
            'content': {
                'keyFindings': ['Market size: $58,000 USD', 'Growth rate: 7.1% annually'],
                'marketOverview': 'The market for paracetamol shows moderate growth.',
            },
            'visualizations': [
                {'type': 'market-trends', 'title': 'Market Trends Over Time',
                 'data': [{'year': '2023', 'value': 28000.0}, {'year': '2024', 'value': 30000.0}]},
                {'type': 'competitive-landscape', 'title': 'Competitive Landscape',
                 'data': [{'name': 'Acme Pharma Pvt Ltd', 'totalValue': 42000.0},
                          {'name': 'Beta Labs', 'totalValue': 13000.0}]},
            ],
            'aiInsights': [
                {'title': 'High Market Concentration Risk', 'description': 'HHI: 5773', 'confidence': 0.9},
            ],
            'metadata': {'dataPoints': 6, 'confidence': 0.9},
        },
        {
            'sectionId': 'appendices',
            'title': 'Appendices & Methodology',
            'content': {'methodology': 'Aggregated shipment analysis.', 'dataSources': ['Trade records']},
            'visualizations': [],
            'aiInsights': [],
            'metadata': {'dataPoints': 6, 'confidence': 0},
        },
    ],
    'summary': {'totalSections': 2, 'totalPages': 5, 'aiInsightsCount': 1, 'visualizationsCount': 2},
}


class TestHelpers:
    """Tests for the text flattening helpers"""

    def test_content_lines(self):
        lines = content_lines({
            'marketSize': 58000.0,
            'keyDrivers': ['a', 'b', 'c'],
            'definitions': {'source': 'Trade records', 'charts': [1, 2]},
        }, max_items=2)

        assert lines == [
            'Market Size: 58,000',
            'Key Drivers:',
            '  - a',
            '  - b',
            'Definitions:',
            '    Source: Trade records',
            '    Charts: 2 entries',
        ]

    def test_plain_content(self):
        assert content_lines('Comprehensive analysis') == ['Comprehensive analysis']
        assert content_lines('') == []

    def test_list_items_use_name(self):
        assert content_lines({'topSuppliers': [{'name': 'Acme', 'share': 72.4}]}) == [
            'Top Suppliers:', '  - Acme'
        ]

    def test_metadata_line(self):
        line = section_metadata_line(SAMPLE_REPORT['sections'][0])
        assert line == 'Data Points: 6, Confidence: 90.0%, AI Insights: 1'

    def test_summary_rows(self):
        assert summary_rows(SAMPLE_REPORT)[0] == ['Total Sections', '2']

    def test_collect_charts(self):
        charts = collect_charts(SAMPLE_REPORT)
        assert set(charts) == {'market-trends', 'competitive-landscape'}


class TestPdfReportBuilder:
    """Tests for PDF output"""

    def test_build(self, tmp_path):
        output = tmp_path / 'report.pdf'
        result = PdfReportBuilder().build(SAMPLE_REPORT, output)

        assert result.success is True
        assert result.document_path == output
        assert result.file_size_bytes > 0
        assert output.read_bytes().startswith(b'%PDF')

    def test_pages_use_configured_dpi(self, tmp_path, monkeypatch):
        dpis = []
        original_savefig = PdfPages.savefig

        def recording_savefig(pdf, figure=None, **kwargs):
            dpis.append(kwargs.get('dpi'))
            return original_savefig(pdf, figure, **kwargs)

        monkeypatch.setattr(PdfPages, 'savefig', recording_savefig)
        result = PdfReportBuilder(ReportOutputConfig(chart_dpi=72)).build(SAMPLE_REPORT, tmp_path / 'report.pdf')

        assert result.success is True
        # Title, two section pages and two charts
        assert dpis == [72] * 5

    def test_build_failure(self, tmp_path):
        """Test an unwritable destination gives a failed result instead of raising"""
        blocker = tmp_path / 'blocker'
        blocker.write_text('not a directory')

        result = PdfReportBuilder().build(SAMPLE_REPORT, blocker / 'report.pdf')

        assert result.success is False
        assert result.error_message


class TestPptxReportBuilder:
    """Tests for PowerPoint output"""

    def test_build(self, tmp_path):
        output = tmp_path / 'report.pptx'
        result = PptxReportBuilder().build(SAMPLE_REPORT, output, title='Dynamic AI Report: paracetamol',
                                           subtitle='Generated by TransData Analytics Platform')

        assert result.success is True

        prs = Presentation(str(output))
        slides = list(prs.slides)
        # Title, summary and one slide per section
        assert len(slides) == 4
        assert slides[0].shapes.title.text == 'Dynamic AI Report: paracetamol'
        assert slides[0].placeholders[1].text == 'Generated by TransData Analytics Platform'
        assert slides[2].shapes.title.text == 'Executive Summary'

    def test_section_bullets(self, tmp_path):
        """Test insights are listed, falling back to content when there are none"""
        output = tmp_path / 'report.pptx'
        PptxReportBuilder().build(SAMPLE_REPORT, output)

        slides = list(Presentation(str(output)).slides)
        texts = [shape.text_frame.text for shape in slides[2].shapes
                 if shape.has_text_frame and shape != slides[2].shapes.title]
        assert any('• High Market Concentration Risk: HHI: 5773' in text for text in texts)

        appendix_texts = [shape.text_frame.text for shape in slides[3].shapes
                          if shape.has_text_frame and shape != slides[3].shapes.title]
        assert any('• Methodology: Aggregated shipment analysis.' in text for text in appendix_texts)
