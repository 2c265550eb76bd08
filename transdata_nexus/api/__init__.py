"""
TransDataNexus HTTP API

Flask application factory and blueprints:
- search_api: /api/health, /api/search, /api/quicksummary/*, /api/analytics
- analytics_api: /api/ai-analytics, /api/advanced-analytics, /api/chart-ai
- report_api: /api/*-report-generator, /api/download-report, /api/view-report
"""

import logging
from typing import Optional

from flask import Flask, jsonify
from flask_caching import Cache
from werkzeug.exceptions import HTTPException

from ..config.settings import TransDataConfig, default_config
from ..database.models import init_database
from ..exceptions import TransDataError
from ..services.cache_service import TradeCache
from ..services.report_store import ReportStore
from .common import EXTENSION_KEY, close_session
from .search_routes import search_api
from .analytics_routes import analytics_api
from .report_routes import report_api

logger = logging.getLogger(__name__)


def register_error_handlers(app: Flask):
    @app.errorhandler(TransDataError)
    def handle_transdata_error(error: TransDataError):
        if error.status_code >= 500:
            logger.error(f"{error.message}: {error.details}")
        else:
            logger.info(f"Request rejected ({error.status_code}): {error.message}")
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error: Exception):
        if isinstance(error, HTTPException):
            return error
        logger.error(f"Unhandled error: {error}", exc_info=True)
        return jsonify({'error': 'Internal Server Error', 'details': str(error)}), 500


def create_app(config: Optional[TransDataConfig] = None, session_factory=None) -> Flask:
    """
    Build the Flask application

    Args:
        config: Service configuration (default_config when omitted)
        session_factory: SQLAlchemy sessionmaker; one is created from
            config.database when omitted

    Returns:
        Configured Flask app
    """
    config = config or default_config

    if session_factory is None:
        session_factory, _ = init_database(
            config.database.get_connection_string(),
            echo=config.database.echo,
        )

    app = Flask(__name__)
    app.config.from_mapping(config.cache.to_flask_config())
    app.json.sort_keys = False

    cache = Cache(app)

    app.extensions[EXTENSION_KEY] = {
        'config': config,
        'session_factory': session_factory,
        'cache': TradeCache(cache, default_timeout=config.cache.default_timeout),
        'report_store': ReportStore(config.reports.reports_directory, config.reports.expiry_hours),
    }

    app.register_blueprint(search_api)
    app.register_blueprint(analytics_api)
    app.register_blueprint(report_api)
    app.teardown_appcontext(close_session)
    register_error_handlers(app)

    logger.info(f"API initialized (cache: {config.cache.cache_type.value}, "
                f"reports: {config.reports.reports_directory})")
    return app


__all__ = [
    'create_app',
    'register_error_handlers',
    'search_api',
    'analytics_api',
    'report_api',
]
