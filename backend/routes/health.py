from flask import Blueprint, jsonify, current_app
from sqlalchemy import text
from models import db
from services.time_utils import utcnow

health_bp = Blueprint('health', __name__)

CRITICAL_BLUEPRINTS = ['auth', 'timers', 'dashboard', 'work_orders']


@health_bp.route('/health', methods=['GET'])
def health_check():
    """
    Health check endpoint
    Tests database connectivity and that the core blueprints are registered
    """
    health_status = {
        'status': 'healthy',
        'app': 'Auto Body Shop API',
        'timestamp': utcnow().isoformat() + 'Z',
        'checks': {}
    }
    status_code = 200

    try:
        db.session.execute(text('SELECT 1'))
        db.session.commit()

        db_url = current_app.config.get('SQLALCHEMY_DATABASE_URI', '').lower()
        if 'sqlite' in db_url:
            db_type = 'SQLite'
        elif 'postgres' in db_url:
            db_type = 'PostgreSQL'
        else:
            db_type = 'Unknown'

        health_status['checks']['database'] = {
            'status': 'healthy',
            'type': db_type,
            'connected': True
        }
    except Exception as db_error:
        db.session.rollback()
        current_app.logger.error(f"Database health check failed: {db_error}")
        health_status['checks']['database'] = {
            'status': 'unhealthy',
            'connected': False,
            'error': str(db_error)
        }
        health_status['status'] = 'unhealthy'
        status_code = 503

    registered = list(current_app.blueprints.keys())
    missing = [name for name in CRITICAL_BLUEPRINTS if name not in registered]
    health_status['checks']['application'] = {
        'status': 'healthy' if not missing else 'warning',
        'blueprints': registered,
        'missing_critical': missing
    }
    if missing:
        current_app.logger.warning(f"Missing critical blueprints: {missing}")
        if status_code == 200:
            health_status['status'] = 'degraded'

    return jsonify(health_status), status_code
