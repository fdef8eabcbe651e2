import os
import click
from flask import Flask, request, redirect, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_cors import CORS
from dotenv import load_dotenv

load_dotenv()

db = SQLAlchemy()
migrate = Migrate()


def create_app(test_config=None):
    app = Flask(__name__)

    is_production = os.getenv('FLASK_ENV') == 'production'

    # Require SECRET_KEY, no insecure fallback
    secret_key = os.getenv('SECRET_KEY')
    database_url = os.getenv('DATABASE_URL')
    app.config['SECRET_KEY'] = secret_key
    app.config['SQLALCHEMY_DATABASE_URI'] = database_url
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
    app.config['AUDIT_LOG_FILE'] = os.getenv('AUDIT_LOG_FILE', 'logs/audit.log')

    # Request size limit (1 MB)
    app.config['MAX_CONTENT_LENGTH'] = 1 * 1024 * 1024

    if test_config:
        app.config.update(test_config)

    if not app.config.get('SECRET_KEY'):
        raise RuntimeError('SECRET_KEY environment variable is required')
    database_url = app.config.get('SQLALCHEMY_DATABASE_URI')
    if not database_url:
        raise RuntimeError('DATABASE_URL environment variable is required')

    if is_production and not database_url.startswith('postgresql'):
        raise RuntimeError(
            'PostgreSQL is required in production. '
            'DATABASE_URL must start with postgresql://'
        )

    if database_url.startswith('postgresql'):
        app.config.setdefault('SQLALCHEMY_ENGINE_OPTIONS', {
            'pool_pre_ping': True,
            'pool_recycle': 300,
        })

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # CORS: restrict origins
    allowed_origins = os.getenv('ALLOWED_ORIGINS', '')
    if allowed_origins:
        origins_list = [o.strip() for o in allowed_origins.split(',') if o.strip()]
    elif is_production:
        raise RuntimeError(
            'ALLOWED_ORIGINS environment variable is required in production'
        )
    else:
        origins_list = [
            'http://localhost:*',
            'http://127.0.0.1:*',
        ]

    CORS(app, resources={r"/api/*": {"origins": origins_list}})

    if is_production:
        @app.before_request
        def enforce_https():
            if not request.is_secure and request.headers.get('X-Forwarded-Proto', 'http') != 'https':
                url = request.url.replace('http://', 'https://', 1)
                return redirect(url, code=301)

    @app.after_request
    def add_security_headers(response):
        response.headers['X-Content-Type-Options'] = 'nosniff'
        response.headers['X-Frame-Options'] = 'DENY'
        response.headers['Cache-Control'] = 'no-store, no-cache, must-revalidate'
        response.headers['Referrer-Policy'] = 'no-referrer'
        if is_production or request.is_secure:
            response.headers['Strict-Transport-Security'] = 'max-age=31536000; includeSubDomains'
        return response

    # Reject non-JSON POST bodies
    @app.before_request
    def validate_content_type():
        if request.method in ('POST', 'PUT'):
            content_type = request.content_type or ''
            if 'application/json' not in content_type:
                return jsonify({'error': 'Content-Type must be application/json'}), 415

    from bp_tracker.utils.audit_logger import setup_audit_logging
    setup_audit_logging(app)

    from bp_tracker.errors import register_error_handlers
    register_error_handlers(app)

    from bp_tracker import models  # noqa: F401
    from bp_tracker.routes.readings import readings_bp
    app.register_blueprint(readings_bp, url_prefix='/api/blood-pressure')

    @app.route('/health')
    def health():
        return {'status': 'healthy'}, 200

    @app.cli.command('issue-token')
    @click.argument('username', default='demo')
    def issue_token(username):
        """Create the owner if needed and print a bearer token for it."""
        from bp_tracker.models.user import User
        from bp_tracker.utils.auth import generate_owner_token
        user = User.get_or_create(username)
        print(generate_owner_token(user.id))

    return app
