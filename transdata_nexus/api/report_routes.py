"""
Report generation, download and view endpoints
"""

import logging
from urllib.parse import quote

from flask import Blueprint, jsonify, make_response, request

from ..exceptions import ValidationError
from ..services.advanced_analytics import AdvancedAnalyticsEngine
from ..services.report_generator import DynamicReportGenerator, AdvancedReportGenerator
from ..services.report_schema import create_report_config, custom_sections_from_names
from .common import get_config, get_repository, get_report_store, fails_with

logger = logging.getLogger(__name__)

report_api = Blueprint('report_api', __name__, url_prefix='/api')


@report_api.route('/dynamic-report-generator', methods=['GET'])
def dynamic_report_info():
    return jsonify(DynamicReportGenerator.describe())


@report_api.route('/dynamic-report-generator', methods=['POST'])
@fails_with('Failed to generate dynamic report')
def dynamic_report():
    body = request.get_json(silent=True) or {}
    search_term = body.get('searchTerm')
    report_type = body.get('reportType')
    format_name = body.get('format')

    if not search_term or not report_type or not format_name:
        raise ValidationError('Search term, report type, and format are required')

    custom_sections = body.get('customSections')
    if custom_sections is not None and not isinstance(custom_sections, list):
        raise ValidationError('customSections must be a list of section titles')

    report_config = create_report_config(
        search_term,
        report_type,
        custom_sections_from_names(custom_sections) if custom_sections else None,
        format=format_name,
    )
    report_config.apply_overrides(
        data_filters=body.get('dataFilters'),
        ai_settings=body.get('aiSettings'),
        visualization_settings=body.get('visualizationSettings'),
        export_settings=body.get('exportSettings'),
    )

    config = get_config()
    engine = AdvancedAnalyticsEngine.load(search_term, get_repository(), config)
    generator = DynamicReportGenerator(get_report_store(), config)
    return jsonify(generator.generate(report_config, engine))


@report_api.route('/advanced-report-generator', methods=['GET'])
def advanced_report_info():
    return jsonify(AdvancedReportGenerator.describe())


@report_api.route('/advanced-report-generator', methods=['POST'])
@fails_with('Failed to generate dynamic report')
def advanced_report():
    body = request.get_json(silent=True) or {}
    search_term = body.get('searchTerm')
    report_type = body.get('reportType') or 'comprehensive'
    format_name = body.get('format') or 'pdf'

    AdvancedReportGenerator.validate(search_term, format_name)

    config = get_config()
    engine = AdvancedAnalyticsEngine.load(search_term, get_repository(), config)
    generator = AdvancedReportGenerator(get_report_store(), config)
    return jsonify(generator.generate(search_term, engine, report_type=report_type, format_name=format_name))


@report_api.route('/download-report/<file_id>', methods=['GET'])
@fails_with('Failed to download report')
def download_report(file_id):
    stored = get_report_store().locate_file(file_id)

    response = make_response(stored.path.read_bytes())
    response.headers['Content-Type'] = stored.content_type
    response.headers['Content-Disposition'] = (
        f"attachment; filename=\"{stored.file_name}\"; filename*=UTF-8''{quote(stored.file_name)}"
    )
    response.headers['Content-Length'] = str(stored.size)
    logger.info(f"Serving report {file_id} as {stored.file_name}")
    return response


@report_api.route('/view-report/<file_id>', methods=['GET'])
@fails_with('Failed to load report')
def view_report(file_id):
    return jsonify(get_report_store().view(file_id))
