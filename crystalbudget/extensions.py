import os
import logging
from logging.handlers import RotatingFileHandler


def setup_logging(app):
    """Configure file logging for the application and the engine loggers."""
    log_level = getattr(logging, app.config['LOG_LEVEL'].upper(), logging.INFO)
    app.logger.setLevel(log_level)
    logging.getLogger('crystalbudget').setLevel(log_level)

    if app.debug or app.testing:
        return

    log_dir = os.path.dirname(app.config['LOG_FILE'])
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)

    # Rotating file log: 10 MB x 5
    file_handler = RotatingFileHandler(
        app.config['LOG_FILE'],
        maxBytes=10 * 1024 * 1024,
        backupCount=5,
        encoding='utf-8'
    )
    file_handler.setFormatter(logging.Formatter(
        '%(asctime)s %(levelname)s [%(name)s] %(message)s'
    ))
    file_handler.setLevel(log_level)
    app.logger.addHandler(file_handler)
    logging.getLogger('crystalbudget').addHandler(file_handler)

    app.logger.info("Logging system initialized")
    app.logger.info(f"Log level: {app.config['LOG_LEVEL']}")
    app.logger.info(f"Log file: {app.config['LOG_FILE']}")

    logging.getLogger('werkzeug').setLevel(logging.WARNING)
