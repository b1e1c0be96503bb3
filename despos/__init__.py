"""Flask application factory."""
from flask import Flask, jsonify, request
from flask_wtf.csrf import CSRFProtect
from werkzeug.exceptions import HTTPException
from despos.database import init_db
import os


def create_app(config_object='config.Config'):
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_object)
    
    # Initialize CSRF protection
    CSRFProtect(app)
    
    from flask_wtf.csrf import CSRFError

    @app.errorhandler(CSRFError)
    def handle_csrf_error(e):
        app.logger.warning(f"CSRF Error: {e.description}")
        return jsonify({'status': 'error', 'message': 'The session has expired. Reload the page.'}), 400
    
    # Sentry error tracking in production
    if os.getenv('SENTRY_DSN') and (app.config.get('ENV') == 'production' or os.getenv('FLASK_ENV') == 'production'):
        import sentry_sdk
        from sentry_sdk.integrations.flask import FlaskIntegration
        
        sentry_sdk.init(
            dsn=os.getenv('SENTRY_DSN'),
            integrations=[FlaskIntegration()],
            traces_sample_rate=0.1,  # 10% of transactions for performance monitoring
            environment=os.getenv('FLASK_ENV', 'production'),
            release=os.getenv('GIT_COMMIT', 'unknown')
        )
    
    # Production: Enable ProxyFix for HTTPS behind Nginx reverse proxy
    if app.config.get('ENV') == 'production':
        from werkzeug.middleware.proxy_fix import ProxyFix
        app.wsgi_app = ProxyFix(
            app.wsgi_app,
            x_for=1,      # Trust X-Forwarded-For with 1 proxy
            x_proto=1,    # Trust X-Forwarded-Proto
            x_host=1,     # Trust X-Forwarded-Host
            x_port=1,     # Trust X-Forwarded-Port
            x_prefix=0    # No prefix (not behind a URL prefix)
        )
    
    # Initialize database
    init_db(app)

    # Error Handlers
    from despos.exceptions import DesposError

    @app.errorhandler(DesposError)
    def handle_despos_error(error):
        """Handle custom application exceptions."""
        if error.status_code >= 500 or error.status_code == 207:
            app.logger.error(f"DesposError [{error.status_code}]: {error.message}")
        else:
            app.logger.warning(f"DesposError [{error.status_code}]: {error.message}")
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(404)
    def not_found_error(error):
        return jsonify({'status': 'error', 'message': 'Not Found'}), 404

    @app.errorhandler(HTTPException)
    def http_error(error):
        return jsonify({'status': 'error', 'message': error.description}), error.code

    @app.errorhandler(500)
    def internal_error(error):
        original = getattr(error, 'original_exception', None) or error
        app.logger.exception(f"Unhandled Exception on {request.method} {request.path}: {original}")
        return jsonify({'status': 'error', 'message': 'Internal Server Error'}), 500

    # Register blueprints
    from despos.blueprints.main import main_bp
    from despos.blueprints.register import register_bp
    from despos.blueprints.sales import sales_bp
    from despos.blueprints.contacts import contacts_bp
    from despos.blueprints.catalog import catalog_bp

    app.register_blueprint(main_bp)
    app.register_blueprint(register_bp)
    app.register_blueprint(sales_bp)
    app.register_blueprint(contacts_bp)
    app.register_blueprint(catalog_bp)
    
    # Register CLI commands
    from despos.cli_commands import init_cli_commands
    init_cli_commands(app)
    
    return app
