from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

import logging
import threading
import uuid
from http import HTTPStatus

from flask import Flask, jsonify, g, current_app, request, has_request_context
from marshmallow import ValidationError
from pythonjsonlogger import jsonlogger
from werkzeug.exceptions import HTTPException as WerkzeugHTTPException

from mystery_slot.config import Config
from mystery_slot.error_codes import ErrorCodes
from mystery_slot.exceptions import AppException
from mystery_slot.routes.slots import slots_bp
from mystery_slot.utils.game_config_manager import GameConfigManager
from mystery_slot.utils.spin_handler import SlotEngine

# Module loggers of the engine share the app's handler.
PACKAGE_LOGGER = 'mystery_slot'

HTTP_ERROR_CODES = {
    404: ErrorCodes.NOT_FOUND,
    405: ErrorCodes.METHOD_NOT_ALLOWED,
}


# Custom Logging Filter for Request ID
class RequestIdFilter(logging.Filter):
    def filter(self, record):
        record.request_id = g.get('request_id', 'N/A') if has_request_context() else 'N/A'
        return True


def configure_logging(app):
    level = getattr(logging, app.config.get('LOG_LEVEL', 'INFO'), logging.INFO)
    if not app.debug:
        handler = logging.StreamHandler()
        formatter = jsonlogger.JsonFormatter(
            '%(asctime)s %(levelname)s %(request_id)s %(name)s %(module)s %(funcName)s %(lineno)d %(message)s'
        )
        handler.setFormatter(formatter)
        handler.addFilter(RequestIdFilter())
        # app.logger ("mystery_slot.app") sits below the package logger; neither propagates.
        for logger in (app.logger, logging.getLogger(PACKAGE_LOGGER)):
            if logger.hasHandlers():
                logger.handlers.clear()
            logger.addHandler(handler)
            logger.setLevel(level)
            logger.propagate = False
    else:
        # Basic logging for debug mode if not already configured
        if not app.logger.handlers:
            logging.basicConfig(level=logging.DEBUG)


def create_app(config_class=Config):
    """Application factory."""
    app = Flask(__name__)
    app.config.from_object(config_class)
    configure_logging(app)

    # Fails fast on a bad tuning file: no request is served with an invalid config.
    reel_config = GameConfigManager.get_reel_config(app.config.get('SLOT_CONFIG_PATH'))
    app.extensions['slot_engine'] = SlotEngine(config=reel_config, seed=app.config['SLOT_ENGINE_SEED'])
    # Engine draws must happen in a fixed order; requests take turns.
    app.extensions['slot_engine_lock'] = threading.Lock()
    app.logger.info(
        f"Slot engine ready (seed {app.config['SLOT_ENGINE_SEED']}, "
        f"config {app.config.get('SLOT_CONFIG_PATH') or 'built-in'})"
    )

    # --- Request ID Middleware ---
    @app.before_request
    def assign_request_id():
        g.request_id = request.headers.get('X-Request-ID') or str(uuid.uuid4())

    @app.after_request
    def add_request_id_header(response):
        response.headers['X-Request-ID'] = g.get('request_id', 'N/A')
        return response

    # --- Error Handlers: every failure uses the same JSON envelope ---
    def error_response(error_code, status_message, status_code, details=None, action_button=None):
        return jsonify({
            'request_id': g.get('request_id', 'N/A'),
            'status': False,
            'error_code': error_code,
            'status_message': status_message,
            'details': details if details is not None else {},
            'action_button': action_button
        }), status_code

    @app.errorhandler(ValidationError)
    def handle_validation_error(e):
        current_app.logger.warning(f"Validation error: {e.messages}")
        return error_response(
            ErrorCodes.VALIDATION_ERROR, 'Input validation failed.',
            HTTPStatus.UNPROCESSABLE_ENTITY, {'errors': e.messages}
        )

    @app.errorhandler(WerkzeugHTTPException)
    def handle_http_exception(e):
        error_code = HTTP_ERROR_CODES.get(e.code, ErrorCodes.GENERIC_ERROR)
        if e.code >= 500:
            error_code = ErrorCodes.INTERNAL_SERVER_ERROR
        current_app.logger.warning(f"HTTP {e.code} {e.name} on {request.method} {request.path}")
        details = {'path': request.path} if e.code == 404 else {'description': e.description}
        return error_response(error_code, e.name, e.code, details)

    @app.errorhandler(AppException)
    def handle_app_exception(e):
        if e.status_code >= 500:
            current_app.logger.error(f"{e.error_code}: {e.status_message} - Details: {e.details}", exc_info=True)
        else:
            current_app.logger.warning(f"{e.error_code}: {e.status_message} - Details: {e.details}")
        return error_response(e.error_code, e.status_message, e.status_code, e.details, e.action_button)

    @app.errorhandler(Exception)
    def handle_unexpected_exception(e):
        current_app.logger.critical("Unhandled exception", exc_info=True)
        return error_response(
            ErrorCodes.INTERNAL_SERVER_ERROR,
            'An unexpected internal server error occurred. Please try again later.',
            HTTPStatus.INTERNAL_SERVER_ERROR
        )

    app.register_blueprint(slots_bp)

    return app


if __name__ == '__main__':
    app = create_app()
    app.run(debug=app.config.get('DEBUG', False))
