"""
PhotoDrop
Flask application factory: login sessions, uploads and shared content.
"""

import logging
import os
import uuid
from flask import Flask, g, request
from flask_login import LoginManager
from flask_wtf.csrf import CSRFProtect
from config import config
from models import db
from services import init_services
from services.errors import ServiceError

# CSRF protection; disabled by TestingConfig
csrf = CSRFProtect()


def create_app(config_name=None, **overrides):
    """Application factory. ``overrides`` are applied after the config class."""

    if config_name is None:
        config_name = os.environ.get('FLASK_ENV', 'development')

    app = Flask(__name__)
    app.config.from_object(config.get(config_name, config['default']))
    app.config.update(overrides)

    db.init_app(app)
    csrf.init_app(app)

    services = init_services(app, db)

    # Flask-Login carries the session token in the signed cookie
    login_manager = LoginManager()
    login_manager.init_app(app)
    login_manager.session_protection = 'strong'

    @login_manager.user_loader
    def load_identity(token):
        return services.access.identify(token)

    @app.before_request
    def before_request():
        g.request_id = str(uuid.uuid4())[:8]

    @app.after_request
    def add_security_headers(response):
        from security import add_security_headers as add_headers
        return add_headers(response)

    @app.after_request
    def log_request(response):
        app.logger.debug(
            f"[{g.get('request_id', 'N/A')}] "
            f"{request.method} {request.path} -> {response.status_code}"
        )
        return response

    # Error handlers
    @app.errorhandler(ServiceError)
    def service_error(e):
        log = app.logger.error if e.status_code >= 500 else app.logger.info
        log(f"[{g.get('request_id', 'N/A')}] {e.error_code}: {e.message}")
        return e.to_dict(), e.status_code

    @app.errorhandler(400)
    def bad_request(e):
        return {'error': 'invalid_request', 'message': e.description}, 400

    @app.errorhandler(404)
    def not_found(e):
        return {'error': 'not_found', 'message': 'Resource not found'}, 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return {'error': 'method_not_allowed', 'message': 'Method not allowed'}, 405

    @app.errorhandler(413)
    def file_too_large(e):
        limit = app.config['MAX_CONTENT_LENGTH']
        return {'error': 'too_large', 'message': f'File too large. Maximum size is {limit} bytes.'}, 413

    @app.errorhandler(429)
    def rate_limit_exceeded(e):
        return {'error': 'rate_limited', 'message': 'Too many requests. Please try again later.'}, 429

    from routes.auth import auth_bp
    from routes.files import files_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(files_bp)

    with app.app_context():
        db.create_all()
        os.makedirs(services.content.root, exist_ok=True)

    return app


if __name__ == '__main__':
    logging.basicConfig(level=logging.DEBUG, format='%(asctime)s %(levelname)s %(name)s: %(message)s')
    # Development server only - use Gunicorn/uWSGI for production
    create_app('development').run(debug=True, host='127.0.0.1', port=5000)
