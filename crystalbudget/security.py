"""Security headers for API responses."""

from flask import current_app, request


def set_security_headers(response):
    """Set security headers for all responses."""
    response.headers['X-Content-Type-Options'] = 'nosniff'
    response.headers['X-Frame-Options'] = 'DENY'
    response.headers['Referrer-Policy'] = 'strict-origin-when-cross-origin'
    response.headers['Content-Security-Policy'] = "default-src 'none'"

    # HSTS for production HTTPS
    if current_app.config.get('HTTPS_MODE'):
        response.headers['Strict-Transport-Security'] = 'max-age=31536000; includeSubDomains'

    if request.path.startswith('/api/'):
        current_app.logger.debug(f'{request.method} {request.path} -> {response.status_code}')

    return response
