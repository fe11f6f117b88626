from __future__ import annotations

import logging
from typing import Mapping

from flask import Flask
from flask_cors import CORS

from .config import Settings
from .errors import register_error_handlers
from .extensions import db
from .routes import register_routes


def create_app(config: Settings | Mapping[str, object] | None = None) -> Flask:
    if config is None:
        settings = Settings.from_env()
    elif isinstance(config, Settings):
        settings = config
    else:
        settings = Settings.from_mapping(config)

    app = Flask(__name__, instance_relative_config=True)
    app.config.from_mapping(settings.to_flask_config())
    app.logger.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))

    db.init_app(app)

    # Allow the frontend to talk to the backend
    CORS(
        app,
        origins=list(settings.cors_origins),
        supports_credentials=True,
        allow_headers=["Content-Type", "Authorization"],
        methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    )

    register_error_handlers(app)
    register_routes(app)

    return app
