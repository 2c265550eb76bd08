"""
Search, quick-summary, platform analytics and health endpoints
"""

import logging

from flask import Blueprint, jsonify

from .common import get_search_service, query_param, int_param, cached_response, fails_with

logger = logging.getLogger(__name__)

search_api = Blueprint('search_api', __name__, url_prefix='/api')


def _filters():
    return {
        'import_country': query_param('importCountry'),
        'export_country': query_param('exportCountry'),
        'exporter': query_param('exporter'),
        'importer': query_param('importer'),
    }


@search_api.route('/health', methods=['GET'])
def health():
    payload, healthy = get_search_service().health()
    return jsonify(payload), 200 if healthy else 500


@search_api.route('/search', methods=['GET'])
@fails_with('Internal Server Error')
def search():
    payload = get_search_service().search(query_param('q'), **_filters())
    return cached_response(payload)


@search_api.route('/search/analytics', methods=['GET'])
@fails_with('Failed to calculate analytics')
def search_analytics():
    return jsonify(get_search_service().search_analytics(query_param('q'), **_filters()))


@search_api.route('/search/quick-search', methods=['GET'])
@fails_with('Failed to perform quick search')
def quick_search():
    return jsonify(get_search_service().quick_search(query_param('q')))


@search_api.route('/quicksummary/trade-records', methods=['GET'])
def trade_records():
    payload = get_search_service().trade_records_summary(query_param('q'), int_param('limit'))
    return cached_response(payload)


@search_api.route('/quicksummary/supplier-customer-summary', methods=['GET'])
@fails_with('Failed to fetch supplier-customer summary')
def supplier_customer_summary():
    payload = get_search_service().supplier_customer_summary(
        query_param('q'),
        int_param('limit'),
        analysis_type=query_param('type') or 'supplier-customer',
    )
    return cached_response(payload)


@search_api.route('/analytics', methods=['GET'])
@fails_with('Internal Server Error')
def platform_analytics():
    return jsonify(get_search_service().platform_analytics())
