"""HTTP boundary for the display layer.

Exposes the engine queries and mark/clear actions as a small JSON API,
and accepts location and sensor events posted by external producers.
"""

import logging

from flask import Flask, jsonify, request

from .core.config import Config
from .core.errors import InvalidCoordinate, LocatorError, NoFixError
from .communication.feeds import FeedError, parse_event
from .presentation import render_status
from .tracking.engine import LocatorEngine

logger = logging.getLogger(__name__)


def create_app(engine: LocatorEngine, config: Config) -> Flask:
    """Build the Flask application bound to an engine.

    Args:
        engine: Started locator engine.
        config: System configuration; display settings shape responses.

    Returns:
        Flask application.
    """
    app = Flask(__name__)

    def status():
        return jsonify(render_status(engine.snapshot(), config.display))

    @app.get("/api/status")
    def get_status():
        return status()

    @app.post("/api/mark")
    def post_mark():
        try:
            point = engine.mark()
        except NoFixError as e:
            return jsonify({"error": str(e)}), 409
        logger.info("Marked via API at %.6f, %.6f", point.latitude, point.longitude)
        return status()

    @app.post("/api/clear")
    def post_clear():
        engine.clear()
        return status()

    @app.post("/api/location")
    def post_location():
        body = request.get_json(silent=True)
        if not isinstance(body, dict):
            return jsonify({"error": "Location must be a JSON object"}), 400
        return _apply({**body, "type": "location"})

    @app.post("/api/sensor")
    def post_sensor():
        body = request.get_json(silent=True) or {}
        return _apply(body)

    def _apply(record: dict):
        try:
            engine.handle_event(parse_event(record))
        except (FeedError, InvalidCoordinate) as e:
            return jsonify({"error": str(e)}), 400
        except LocatorError as e:
            logger.warning("Event rejected: %s", e)
            return jsonify({"error": str(e)}), 422
        return status()

    return app
