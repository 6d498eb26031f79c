"""Global error handlers."""
from flask import jsonify
import logging

from crystalbudget.api.v1.schemas import APIResponse

logger = logging.getLogger(__name__)


def register_error_handlers(app):
    """Register JSON error handlers for the application."""

    @app.errorhandler(400)
    def bad_request_error(error):
        return jsonify(APIResponse.error('Bad request', code='bad_request')), 400

    @app.errorhandler(404)
    def not_found_error(error):
        return jsonify(APIResponse.error('Not found', code='not_found')), 404

    @app.errorhandler(405)
    def method_not_allowed_error(error):
        return jsonify(APIResponse.error('Method not allowed', code='method_not_allowed')), 405

    @app.errorhandler(500)
    def internal_error(error):
        logger.error(f'Server Error: {error}')
        return jsonify(APIResponse.error('Internal server error', code='internal_error')), 500
