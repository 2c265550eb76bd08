"""
Document Builder Service

Renders generated report dictionaries into downloadable documents:
- PDF through matplotlib's PdfPages backend (text pages, tables, charts)
- PowerPoint through python-pptx (title, summary and section slides)

Both builders take the report produced by the report generators:
    {searchTerm, reportType, sections: [{title, content, analytics,
     visualizations, aiInsights, metadata}], summary, metadata}
"""

import logging
import textwrap
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Any

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
from matplotlib.backends.backend_pdf import PdfPages

from pptx import Presentation
from pptx.dml.color import RGBColor
from pptx.util import Inches, Pt

from ..config.settings import ReportOutputConfig
from ..utils.formatting import format_large_number, format_plain_number

logger = logging.getLogger(__name__)


A4_PORTRAIT = (8.27, 11.69)
LINES_PER_PAGE = 48
WRAP_WIDTH = 95


@dataclass
class DocumentResult:
    """Result of document generation"""
    success: bool
    document_path: Optional[Path] = None
    file_size_bytes: int = 0
    generation_time_seconds: float = 0.0
    error_message: Optional[str] = None


# =============================================================================
# SHARED HELPERS
# =============================================================================

def _label(key: str) -> str:
    """camelCase key -> 'Camel Case' label"""
    words = []
    current = ''
    for char in key:
        if char.isupper() and current:
            words.append(current)
            current = char
        else:
            current += char
    if current:
        words.append(current)
    return ' '.join(word.capitalize() for word in words)


def _scalar(value: Any) -> str:
    if isinstance(value, bool):
        return 'Yes' if value else 'No'
    if isinstance(value, (int, float)):
        return format_plain_number(value, max_decimals=2)
    return str(value)


def _item_text(item: Any) -> str:
    """One-line rendering of a list entry"""
    if isinstance(item, dict):
        for key in ('name', 'title', 'description', 'metric', 'scenario', 'region', 'action', 'term'):
            if key in item:
                return str(item[key])
        return ', '.join(f"{_label(k)}: {_scalar(v)}" for k, v in item.items()
                         if not isinstance(v, (dict, list)))
    return _scalar(item)


def content_lines(content: Any, max_items: int = 5) -> List[str]:
    """
    Flatten section content into printable lines

    Scalars become 'Label: value', lists become bullet items (at most
    max_items each) and nested dictionaries are indented one level.
    """
    lines = []
    if not isinstance(content, dict):
        return [_item_text(content)] if content else []

    for key, value in content.items():
        if isinstance(value, dict):
            lines.append(f"{_label(key)}:")
            for sub_key, sub_value in value.items():
                if isinstance(sub_value, (dict, list)):
                    lines.append(f"    {_label(sub_key)}: {len(sub_value)} entries")
                else:
                    lines.append(f"    {_label(sub_key)}: {_scalar(sub_value)}")
        elif isinstance(value, list):
            lines.append(f"{_label(key)}:")
            lines.extend(f"  - {_item_text(item)}" for item in value[:max_items])
        else:
            lines.append(f"{_label(key)}: {_scalar(value)}")
    return lines


def section_metadata_line(section: Dict) -> str:
    metadata = section.get('metadata', {})
    confidence = (metadata.get('confidence') or 0) * 100
    return (f"Data Points: {metadata.get('dataPoints', 0)}, "
            f"Confidence: {confidence:.1f}%, "
            f"AI Insights: {len(section.get('aiInsights') or [])}")


def summary_rows(report: Dict) -> List[List[str]]:
    summary = report.get('summary', {})
    return [
        ['Total Sections', str(summary.get('totalSections', 0))],
        ['Total Pages', str(summary.get('totalPages', 0))],
        ['AI Insights', str(summary.get('aiInsightsCount', 0))],
        ['Visualizations', str(summary.get('visualizationsCount', 0))],
    ]


def collect_charts(report: Dict) -> Dict[str, Dict]:
    """First visualization of each type across all sections"""
    charts = {}
    for section in report.get('sections', []):
        for chart in section.get('visualizations') or []:
            charts.setdefault(chart.get('type'), chart)
    return charts


# =============================================================================
# PDF
# =============================================================================

class PdfReportBuilder:
    """
    Builds an A4 PDF report with matplotlib

    Pages:
    - Title page with the summary table
    - One or more text pages per section
    - Chart pages for market trends and the competitive landscape
    """

    def __init__(self, config: Optional[ReportOutputConfig] = None):
        self.config = config or ReportOutputConfig()
        self.colors = self.config.colors

    def build(self, report: Dict, output_path: Path, title: Optional[str] = None) -> DocumentResult:
        """
        Render a report to a PDF file

        Args:
            report: Generated report dictionary
            output_path: Destination file
            title: Title shown on the first page

        Returns:
            DocumentResult with document path
        """
        start_time = datetime.utcnow()
        output_path = Path(output_path)
        title = title or f"Dynamic AI Report: {report.get('searchTerm', '')}"

        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            with PdfPages(str(output_path)) as pdf:
                self._title_page(pdf, report, title)
                for section in report.get('sections', []):
                    self._section_pages(pdf, section)
                self._chart_pages(pdf, report)

                info = pdf.infodict()
                info['Title'] = title
                info['Author'] = self.config.author
                info['Subject'] = f"Trade analysis for {report.get('searchTerm', '')}"

            duration = (datetime.utcnow() - start_time).total_seconds()
            logger.info(f"PDF report saved to {output_path}")

            return DocumentResult(
                success=True,
                document_path=output_path,
                file_size_bytes=output_path.stat().st_size,
                generation_time_seconds=duration,
            )

        except Exception as e:
            logger.error(f"PDF generation failed: {e}", exc_info=True)
            return DocumentResult(success=False, error_message=str(e))

    def _new_page(self):
        fig = plt.figure(figsize=A4_PORTRAIT)
        fig.patch.set_facecolor('white')
        return fig

    def _save(self, pdf: PdfPages, fig):
        pdf.savefig(fig, dpi=self.config.chart_dpi)
        plt.close(fig)

    def _title_page(self, pdf: PdfPages, report: Dict, title: str):
        fig = self._new_page()
        fig.text(0.5, 0.82, title, ha='center', va='center', fontsize=20,
                 fontweight='bold', color=self.colors['primary'], wrap=True, parse_math=False)
        fig.text(0.5, 0.76, f"Report type: {report.get('reportType', '')}", ha='center', fontsize=12,
                 color=self.colors['neutral'])
        fig.text(0.5, 0.73, f"Generated on {datetime.utcnow().strftime('%B %d, %Y')}", ha='center',
                 fontsize=11, color=self.colors['neutral'])

        ax = fig.add_axes([0.2, 0.4, 0.6, 0.25])
        ax.axis('off')
        table = ax.table(cellText=summary_rows(report), colLabels=['Metric', 'Value'],
                         loc='center', cellLoc='left')
        table.scale(1, 1.8)
        for (row, _), cell in table.get_celld().items():
            if row == 0:
                cell.set_facecolor(self.colors['primary'])
                cell.set_text_props(color='white', fontweight='bold')

        fig.text(0.5, 0.08, self.config.company_name, ha='center', fontsize=9, color=self.colors['neutral'])
        self._save(pdf, fig)

    def _section_lines(self, section: Dict) -> List[str]:
        lines = []
        for line in content_lines(section.get('content')):
            lines.extend(textwrap.wrap(line, WRAP_WIDTH, subsequent_indent='    ') or [''])

        insights = section.get('aiInsights') or []
        if insights:
            lines.append('')
            lines.append('AI Insights:')
            for insight in insights:
                text = f"  * {insight.get('title', '')}: {insight.get('description', '')}"
                lines.extend(textwrap.wrap(text, WRAP_WIDTH, subsequent_indent='    '))
        return lines

    def _section_pages(self, pdf: PdfPages, section: Dict):
        lines = self._section_lines(section)
        chunks = [lines[i:i + LINES_PER_PAGE] for i in range(0, len(lines), LINES_PER_PAGE)] or [[]]

        for page_number, chunk in enumerate(chunks):
            fig = self._new_page()
            heading = section.get('title', '')
            if page_number:
                heading += ' (continued)'
            fig.text(0.07, 0.94, heading, fontsize=16, fontweight='bold', color=self.colors['primary'],
                     parse_math=False)
            fig.text(0.07, 0.915, section_metadata_line(section), fontsize=9, color=self.colors['neutral'])

            y = 0.88
            for line in chunk:
                fig.text(0.07, y, line, fontsize=9, parse_math=False)
                y -= 0.017

            self._save(pdf, fig)

    def _chart_pages(self, pdf: PdfPages, report: Dict):
        charts = collect_charts(report)

        trends = charts.get('market-trends')
        if trends and trends.get('data'):
            data = trends['data']
            fig, ax = plt.subplots(figsize=A4_PORTRAIT)
            years = [str(point.get('year')) for point in data]
            values = [point.get('value', 0) for point in data]
            ax.plot(years, values, marker='o', color=self.colors['primary'], linewidth=2)
            ax.set_title(trends.get('title', 'Market Trends Over Time'), fontweight='bold', pad=15)
            ax.set_ylabel('Value (USD)')
            ax.grid(True, alpha=0.3)
            for year, value in zip(years, values):
                ax.annotate(format_large_number(value), (year, value), textcoords='offset points',
                            xytext=(0, 8), ha='center', fontsize=8)
            plt.tight_layout()
            self._save(pdf, fig)

        landscape = charts.get('competitive-landscape')
        if landscape and landscape.get('data'):
            data = list(reversed(landscape['data']))
            fig, ax = plt.subplots(figsize=A4_PORTRAIT)
            names = [textwrap.shorten(str(s.get('name')), 40) for s in data]
            values = [s.get('totalValue', s.get('value', 0)) for s in data]
            ax.barh(names, values, color=self.colors['secondary'])
            ax.set_title(landscape.get('title', 'Competitive Landscape'), fontweight='bold', pad=15)
            ax.set_xlabel('Value (USD)')
            ax.grid(True, axis='x', alpha=0.3)
            plt.tight_layout()
            self._save(pdf, fig)


# =============================================================================
# POWERPOINT
# =============================================================================

class PptxReportBuilder:
    """
    Builds a 16:9 PowerPoint deck with python-pptx

    Slides:
    - Title slide
    - Report summary table
    - One slide per section with a metadata table and insight bullets
    """

    TITLE_LAYOUT = 0
    TITLE_ONLY_LAYOUT = 5

    def __init__(self, config: Optional[ReportOutputConfig] = None):
        self.config = config or ReportOutputConfig()

    def _rgb(self, name: str) -> RGBColor:
        return RGBColor.from_string(self.config.colors[name].lstrip('#'))

    def build(self, report: Dict, output_path: Path, title: Optional[str] = None,
              subtitle: Optional[str] = None) -> DocumentResult:
        """
        Render a report to a .pptx file

        Args:
            report: Generated report dictionary
            output_path: Destination file
            title: Title slide heading
            subtitle: Title slide subtitle (defaults to the generation date)

        Returns:
            DocumentResult with document path
        """
        start_time = datetime.utcnow()
        output_path = Path(output_path)
        title = title or f"Dynamic AI Report: {report.get('searchTerm', '')}"
        subtitle = subtitle or f"Generated on {datetime.utcnow().strftime('%B %d, %Y')}"

        try:
            prs = Presentation()
            prs.slide_width = Inches(13.333)
            prs.slide_height = Inches(7.5)

            prs.core_properties.author = self.config.author
            prs.core_properties.title = title

            self._title_slide(prs, title, subtitle)
            self._summary_slide(prs, report)
            for section in report.get('sections', []):
                self._section_slide(prs, section)

            output_path.parent.mkdir(parents=True, exist_ok=True)
            prs.save(str(output_path))

            duration = (datetime.utcnow() - start_time).total_seconds()
            logger.info(f"PowerPoint report saved to {output_path}")

            return DocumentResult(
                success=True,
                document_path=output_path,
                file_size_bytes=output_path.stat().st_size,
                generation_time_seconds=duration,
            )

        except Exception as e:
            logger.error(f"PowerPoint generation failed: {e}", exc_info=True)
            return DocumentResult(success=False, error_message=str(e))

    def _title_slide(self, prs, title: str, subtitle: str):
        slide = prs.slides.add_slide(prs.slide_layouts[self.TITLE_LAYOUT])
        slide.shapes.title.text = title
        slide.shapes.title.text_frame.paragraphs[0].font.color.rgb = self._rgb('primary')
        slide.placeholders[1].text = subtitle

    def _titled_slide(self, prs, heading: str):
        slide = prs.slides.add_slide(prs.slide_layouts[self.TITLE_ONLY_LAYOUT])
        slide.shapes.title.text = heading
        paragraph = slide.shapes.title.text_frame.paragraphs[0]
        paragraph.font.size = Pt(30)
        paragraph.font.bold = True
        paragraph.font.color.rgb = self._rgb('primary')
        return slide

    def _add_table(self, slide, rows: List[List[str]], left, top, width):
        shape = slide.shapes.add_table(len(rows) + 1, 2, left, top, width, Inches(0.4) * (len(rows) + 1))
        table = shape.table
        table.cell(0, 0).text = 'Metric'
        table.cell(0, 1).text = 'Value'
        for row_index, (name, value) in enumerate(rows, start=1):
            table.cell(row_index, 0).text = name
            table.cell(row_index, 1).text = value
        for row in table.rows:
            for cell in row.cells:
                for paragraph in cell.text_frame.paragraphs:
                    paragraph.font.size = Pt(14)
        return table

    def _summary_slide(self, prs, report: Dict):
        slide = self._titled_slide(prs, 'Report Summary')
        self._add_table(slide, summary_rows(report), Inches(2.5), Inches(1.8), Inches(8))

    def _section_slide(self, prs, section: Dict):
        slide = self._titled_slide(prs, section.get('title', ''))
        metadata = section.get('metadata', {})
        rows = [
            ['Data Points', str(metadata.get('dataPoints', 0))],
            ['Confidence', f"{(metadata.get('confidence') or 0) * 100:.1f}%"],
            ['AI Insights', str(len(section.get('aiInsights') or []))],
            ['Visualizations', str(len(section.get('visualizations') or []))],
        ]
        self._add_table(slide, rows, Inches(0.5), Inches(1.6), Inches(5.5))

        box = slide.shapes.add_textbox(Inches(6.5), Inches(1.6), Inches(6.3), Inches(5.4))
        frame = box.text_frame
        frame.word_wrap = True

        insights = section.get('aiInsights') or []
        bullets = [f"{i.get('title', '')}: {i.get('description', '')}" for i in insights[:5]]
        if not bullets:
            bullets = content_lines(section.get('content'), max_items=3)[:8]

        for index, text in enumerate(bullets):
            paragraph = frame.paragraphs[0] if index == 0 else frame.add_paragraph()
            paragraph.text = f"• {text}"
            paragraph.font.size = Pt(14)
