"""
Request plumbing shared by the API blueprints

- Per-request database session and repository
- Service accessors bound to the application config and cache
- X-Cache aware JSON responses
- Endpoint-specific failure messages
"""

import functools
import logging
from typing import Dict, Optional

from flask import current_app, g, jsonify, make_response, request

from ..database.repository import TradeRecordRepository
from ..exceptions import TransDataError
from ..services.cache_service import TradeCache
from ..services.report_store import ReportStore
from ..services.search_service import SearchService, CachedPayload

logger = logging.getLogger(__name__)


EXTENSION_KEY = 'transdata_nexus'


def state() -> Dict:
    """Objects registered on the app by create_app"""
    return current_app.extensions[EXTENSION_KEY]


def get_session():
    if 'db_session' not in g:
        g.db_session = state()['session_factory']()
    return g.db_session


def close_session(exception=None):
    session = g.pop('db_session', None)
    if session is not None:
        session.close()


def get_repository() -> TradeRecordRepository:
    return TradeRecordRepository(get_session())


def get_config():
    return state()['config']


def get_cache() -> TradeCache:
    return state()['cache']


def get_report_store() -> ReportStore:
    return state()['report_store']


def get_search_service() -> SearchService:
    return SearchService(get_repository(), get_cache(), get_config())


def query_param(name: str) -> Optional[str]:
    value = request.args.get(name)
    return value if value not in (None, '') else None


def int_param(name: str) -> Optional[int]:
    """Positive integer query parameter; missing or malformed values give None"""
    try:
        value = int(request.args.get(name, ''))
    except ValueError:
        return None
    return value if value > 0 else None


def cached_response(payload: CachedPayload, status: int = 200):
    """JSON response with an X-Cache header reporting whether the cache served it"""
    response = make_response(jsonify(payload.data), status)
    response.headers['X-Cache'] = 'HIT' if payload.cache_hit else 'MISS'
    return response


def fails_with(message: str):
    """
    Report unexpected errors in a view as `message` with the exception text
    as details

    TransDataError subclasses pass through untouched so their own status
    codes still apply.
    """
    def decorator(view):
        @functools.wraps(view)
        def wrapper(*args, **kwargs):
            try:
                return view(*args, **kwargs)
            except TransDataError:
                raise
            except Exception as e:
                logger.error(f"{request.path}: {e}", exc_info=True)
                raise TransDataError(message, details=str(e))
        return wrapper
    return decorator
