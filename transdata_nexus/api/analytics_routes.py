"""
AI analytics, advanced analytics and chart insight endpoints
"""

import logging

from flask import Blueprint, jsonify, request

from ..exceptions import ValidationError
from ..services.advanced_analytics import AdvancedAnalyticsEngine
from ..services.chart_insights import ChartInsightService
from ..services.market_analytics import MarketAnalyticsService
from .common import get_config, get_repository, query_param, fails_with

logger = logging.getLogger(__name__)

analytics_api = Blueprint('analytics_api', __name__, url_prefix='/api')


@analytics_api.route('/ai-analytics', methods=['GET'])
@fails_with('Internal Server Error')
def ai_analytics():
    query = query_param('q')
    if not query:
        raise ValidationError('Query parameter "q" is required')

    logger.info(f"AI Analytics API called with query: {query}")
    service = MarketAnalyticsService(get_repository(), get_config())
    return jsonify(service.generate(query))


@analytics_api.route('/advanced-analytics', methods=['GET'])
@fails_with('Failed to run advanced analytics')
def advanced_analytics():
    query = query_param('q')
    if not query:
        raise ValidationError('Query parameter "q" is required')

    engine = AdvancedAnalyticsEngine.load(query, get_repository(), get_config())
    return jsonify({'success': True, 'searchTerm': query, **engine.run_comprehensive_analysis()})


@analytics_api.route('/chart-ai', methods=['GET'])
def chart_ai_info():
    return jsonify({
        'message': 'Chart AI Analysis API',
        'endpoints': {
            'POST': 'Analyze chart data and generate insights',
            'GET': 'API information',
        },
    })


@analytics_api.route('/chart-ai', methods=['POST'])
@fails_with('Failed to analyze chart data')
def chart_ai():
    body = request.get_json(silent=True) or {}
    service = ChartInsightService(get_config().analytics.zscore_threshold)
    return jsonify(service.analyze(
        body.get('chartType'),
        body.get('data'),
        body.get('title'),
        query=body.get('query'),
    ))
