#!/usr/bin/env python3
"""
Flask feed generator for the ska feed.
Serves feed skeletons composed from the post index, plus the DID document and
generator description the AppView needs.
"""

from flask import Flask, jsonify, request
from werkzeug.middleware.proxy_fix import ProxyFix
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
import logging
from datetime import datetime, timezone
from functools import wraps
from typing import Optional

from cors_config import configure_cors
from skafeed.config import Settings, configure_logging
from skafeed.feeds.algos import ALGOS, feed_uri, resolve_algo
from skafeed.storage.backends import make_index_store
from skafeed.storage.errors import IndexStoreError
from skafeed.storage.index_store import IndexStore
from skafeed.storage.postgres_schema import ensure_postgres_schema

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 50
MAX_LIMIT = 100


def parse_limit(raw: Optional[str]) -> int:
    try:
        limit = int(raw) if raw is not None else DEFAULT_LIMIT
    except (TypeError, ValueError):
        limit = DEFAULT_LIMIT
    return max(1, min(limit, MAX_LIMIT))


def handle_store_error(f):
    """Decorator turning index failures into a retryable 503"""
    @wraps(f)
    async def decorated_function(*args, **kwargs):
        try:
            return await f(*args, **kwargs)
        except IndexStoreError as e:
            logger.error(f"Index error in {f.__name__}: {e}")
            return jsonify({
                'error': 'ServiceUnavailable',
                'message': 'Feed index temporarily unavailable',
                'retry': True,
            }), 503
    return decorated_function


def create_app(settings: Optional[Settings] = None, store: Optional[IndexStore] = None) -> Flask:
    settings = settings or Settings.from_env()
    if store is None:
        if settings.index_backend == "postgres":
            ensure_postgres_schema(settings.pg_dsn)
        store = make_index_store(settings.index_backend, settings.pg_dsn)

    app = Flask(__name__)
    # Feed generators usually sit behind a TLS-terminating proxy
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1)
    app.extensions['skafeed.store'] = store
    app.extensions['skafeed.settings'] = settings
    configure_cors(app)

    limiter = Limiter(
        key_func=get_remote_address,
        default_limits=["3000 per hour", "300 per minute"],
        storage_uri="memory://"
    )
    limiter.init_app(app)

    @app.route('/xrpc/app.bsky.feed.getFeedSkeleton')
    @handle_store_error
    async def get_feed_skeleton():
        feed = request.args.get('feed')
        if not feed:
            return jsonify({'error': 'InvalidRequest', 'message': 'Missing required parameter: feed'}), 400
        algo = resolve_algo(feed, settings.publisher_did)
        if algo is None:
            return jsonify({'error': 'UnsupportedAlgorithm', 'message': 'Unsupported algorithm'}), 400

        limit = parse_limit(request.args.get('limit'))
        page = await algo(
            store,
            limit=limit,
            cursor=request.args.get('cursor'),
            lookback_hours=settings.lookback_hours,
        )
        logger.info(f"Served {len(page.posts)} posts (limit={limit}, next={page.cursor})")
        return jsonify(page.to_skeleton())

    @app.route('/xrpc/app.bsky.feed.describeFeedGenerator')
    def describe_feed_generator():
        publisher = settings.publisher_did or settings.service_did
        return jsonify({
            'did': settings.service_did,
            'feeds': [{'uri': feed_uri(publisher, shortname)} for shortname in ALGOS],
        })

    @app.route('/.well-known/did.json')
    def get_did_document():
        if not settings.service_did.endswith(settings.hostname):
            return jsonify({'error': 'Endpoint not found'}), 404
        return jsonify({
            '@context': ['https://www.w3.org/ns/did/v1'],
            'id': settings.service_did,
            'service': [{
                'id': '#bsky_fg',
                'type': 'BskyFeedGenerator',
                'serviceEndpoint': f'https://{settings.hostname}',
            }],
        })

    @app.route('/health')
    def health_check():
        return jsonify({
            'status': 'healthy',
            'index_backend': store.name,
            'timestamp': datetime.now(timezone.utc).isoformat(),
        })

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({'error': 'Endpoint not found'}), 404

    @app.errorhandler(429)
    def rate_limit_handler(error):
        return jsonify({
            'error': 'RateLimitExceeded',
            'message': 'Too many requests, please slow down',
            'retry_after': 60
        }), 429

    @app.errorhandler(500)
    def internal_error(error):
        logger.error(f"Internal server error: {error}")
        return jsonify({'error': 'InternalServerError'}), 500

    return app


if __name__ == '__main__':
    settings = Settings.from_env()
    configure_logging(settings.log_level)
    app = create_app(settings)

    logger.info(f"Starting ska feed generator on {settings.listen_host}:{settings.port}")
    logger.info(f"Service DID: {settings.service_did}")
    app.run(host=settings.listen_host, port=settings.port, threaded=True)
