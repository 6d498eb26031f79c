from flask import Flask
from crystalbudget.core.config import get_config
from crystalbudget.extensions import setup_logging
import os
from typing import Optional


def create_app(config_name: Optional[str] = None):
    """Application factory pattern."""
    if config_name is None:
        config_name = os.getenv("APP_CONFIG", "production")

    app = Flask(__name__)

    # Load configuration
    app.config.from_object(get_config(config_name))

    # Category and source names are mostly Cyrillic
    app.json.ensure_ascii = False

    setup_logging(app)
    app.logger.info(f'CrystalBudget startup - Config: {config_name}')

    # Register blueprints
    from crystalbudget.api.v1 import api_v1_bp
    app.register_blueprint(api_v1_bp)

    from crystalbudget.core.errors import register_error_handlers
    register_error_handlers(app)

    from crystalbudget.security import set_security_headers
    app.after_request(set_security_headers)

    # Register CLI commands
    from crystalbudget.core.cli import register_cli_commands
    register_cli_commands(app)

    return app
