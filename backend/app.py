import os
import logging
from flask import Flask, request, jsonify
from flask_login import LoginManager
from flask_cors import CORS
from sqlalchemy import text

from config import config, get_config_name
from models import db, Employee
from routes import BLUEPRINTS, error_response
from services.errors import ServiceError


def _configure_logging(app, config_name):
    if not app.debug and config_name == 'production':
        logging.basicConfig(level=logging.INFO)
        app.logger.setLevel(logging.INFO)
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(
            '%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]'
        ))
        app.logger.addHandler(handler)
        app.logger.info("Production logging configured")
    elif app.debug:
        app.logger.setLevel(logging.DEBUG)
        app.logger.debug("Debug logging enabled")


def _register_blueprints(app):
    registered, failed = [], []
    for module_name, blueprint_name, url_prefix in BLUEPRINTS:
        try:
            module = __import__(module_name, fromlist=[blueprint_name])
            app.register_blueprint(getattr(module, blueprint_name), url_prefix=url_prefix)
            registered.append(blueprint_name)
            app.logger.debug(f"Registered {blueprint_name} at {url_prefix}")
        except (ImportError, AttributeError) as e:
            app.logger.error(f"Failed to register {blueprint_name} from {module_name}: {e}")
            failed.append(blueprint_name)

    app.logger.info(f"Blueprint registration complete: {len(registered)} successful, {len(failed)} failed")
    if failed and app.config.get('TESTING'):
        raise RuntimeError(f"Blueprints failed to register: {failed}")
    return registered, failed


def create_app(config_name=None):
    """
    Application factory for the Auto Body Shop API.

    Args:
        config_name (str, optional): 'development', 'production' or
            'testing'. Detected from the environment when omitted.
    """
    if config_name is None:
        config_name = get_config_name()

    app = Flask(__name__)

    config_class = config[config_name]
    app.config.from_object(config_class())
    _configure_logging(app, config_name)
    app.logger.info(f"Configuration loaded for {config_name} environment")

    try:
        os.makedirs(app.instance_path, exist_ok=True)
    except OSError as e:
        app.logger.warning(f"Could not create instance folder: {e}")

    db.init_app(app)

    CORS(app,
         origins=app.config.get('CORS_ORIGINS', []),
         supports_credentials=app.config.get('CORS_SUPPORTS_CREDENTIALS', True),
         methods=['GET', 'POST', 'PUT', 'DELETE', 'OPTIONS', 'PATCH'],
         allow_headers=['Content-Type', 'Authorization', 'X-Requested-With', 'Accept', 'Origin'],
         max_age=86400)

    login_manager = LoginManager()
    login_manager.init_app(app)
    login_manager.session_protection = 'strong'

    @login_manager.unauthorized_handler
    def handle_unauthorized():
        """Return JSON instead of redirecting to a login page"""
        app.logger.warning(f"Unauthorized access attempt to {request.path} from {request.remote_addr}")
        return jsonify({
            'error': 'Authentication required',
            'message': 'You must be logged in to access this endpoint',
            'code': 'UNAUTHORIZED'
        }), 401

    @login_manager.user_loader
    def load_user(user_id):
        try:
            return db.session.get(Employee, int(user_id))
        except (ValueError, TypeError) as e:
            app.logger.warning(f"Invalid user_id provided to user_loader: {user_id} - {e}")
            return None

    registered, failed = _register_blueprints(app)

    @app.route('/')
    def index():
        return jsonify({
            'message': 'Auto Body Shop API',
            'status': 'running',
            'environment': config_name,
            'blueprints': {'registered': registered, 'failed': failed},
            'health': '/api/health'
        })

    @app.errorhandler(ServiceError)
    def handle_service_error(error):
        db.session.rollback()
        return error_response(error)

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({
            'error': 'Not Found',
            'message': f'The requested endpoint {request.path} does not exist',
            'code': 'NOT_FOUND'
        }), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({
            'error': 'Method Not Allowed',
            'message': f'The method {request.method} is not allowed for endpoint {request.path}',
            'code': 'METHOD_NOT_ALLOWED'
        }), 405

    @app.errorhandler(500)
    def internal_error(error):
        db.session.rollback()
        app.logger.error(f"Internal server error: {error}")
        return jsonify({
            'error': 'Internal Server Error',
            'message': 'An unexpected error occurred. Please try again later.',
            'code': 'INTERNAL_ERROR'
        }), 500

    from commands import register_commands
    register_commands(app)

    with app.app_context():
        try:
            db.session.execute(text('SELECT 1'))
            db.create_all()
            app.logger.info("Database tables created/verified")
        except Exception as db_error:
            app.logger.error(f"Database initialization error: {db_error}")
            if config_name != 'production':
                raise
            app.logger.error("Production database error - app will start but may not function properly")

    app.logger.info(f"Auto Body Shop API created ({config_name}, "
                    f"{len(list(app.url_map.iter_rules()))} routes)")
    return app


if __name__ == '__main__':
    local_app = create_app()
    port = int(os.environ.get('PORT', 5000))
    local_app.run(
        debug=local_app.config.get('DEBUG', False),
        host='0.0.0.0',
        port=port
    )
