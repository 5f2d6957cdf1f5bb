# CORS configuration
import logging

from flask import request
from flask_cors import CORS

logger = logging.getLogger(__name__)


def configure_cors(app, origins=None):
    # Feed skeletons are public reads; only GET/OPTIONS are exposed
    CORS(app, resources={
        r"/xrpc/*": {
            "origins": origins or "*",
            "methods": ["GET", "OPTIONS"],
            "allow_headers": ["Content-Type", "Authorization"],
        },
        r"/.well-known/*": {"origins": "*", "methods": ["GET"]},
    })

    @app.after_request
    def log_cors(response):
        origin = request.headers.get('Origin')
        if origin:
            logger.debug(f"CORS - Origin: {origin} {request.method} -> {response.status_code}")
        return response

    return app
