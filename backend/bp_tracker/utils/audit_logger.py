"""
Audit logging for access to blood pressure readings.
Every create, read, delete and export is recorded with owner, action and resource.
"""
import os
import logging
import structlog
from datetime import datetime, timezone
from flask import current_app, has_request_context, request, g
from functools import wraps


def setup_audit_logging(app):
    """Configure structured JSON audit logging."""

    log_file = app.config.get('AUDIT_LOG_FILE') or os.getenv('AUDIT_LOG_FILE', 'logs/audit.log')
    log_dir = os.path.dirname(log_file)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer()
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    audit_logger = logging.getLogger('audit')
    audit_logger.setLevel(logging.INFO)
    # Re-created apps (tests, reloader) must not stack handlers on the same file
    if not any(getattr(h, 'baseFilename', None) == os.path.abspath(log_file)
               for h in audit_logger.handlers):
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.INFO)
        file_handler.setFormatter(logging.Formatter('%(message)s'))
        audit_logger.addHandler(file_handler)

    app.config['AUDIT_LOGGER'] = structlog.get_logger('audit')


def get_audit_logger():
    return current_app.config.get('AUDIT_LOGGER', structlog.get_logger('audit'))


def audit_log(action: str, resource_type: str, resource_id: str = None,
              details: dict = None, owner_id=None):
    """
    Record an audit event.

    Args:
        action: CREATE, READ, DELETE, EXPORT
        resource_type: Type of resource accessed (reading, reading_stats, ...)
        resource_id: ID of the specific resource (optional)
        details: Additional details about the action (optional)
        owner_id: Acting owner (defaults to g.owner_id)
    """
    logger = get_audit_logger()

    if owner_id is None:
        owner_id = getattr(g, 'owner_id', 'anonymous')

    if has_request_context():
        client_ip = request.remote_addr or 'unknown'
        user_agent = request.headers.get('User-Agent', 'unknown')
    else:
        client_ip = user_agent = 'unknown'

    logger.info(
        "audit_event",
        timestamp=datetime.now(timezone.utc).isoformat(),
        action=action,
        resource_type=resource_type,
        resource_id=resource_id,
        owner_id=owner_id,
        client_ip=client_ip,
        user_agent=user_agent,
        details=details or {},
    )


def audit_phi_access(action: str, resource_type: str):
    """Decorator that logs access to a route before running it."""
    def decorator(f):
        @wraps(f)
        def wrapper(*args, **kwargs):
            resource_id = kwargs.get('reading_id')
            audit_log(action, resource_type, resource_id=str(resource_id) if resource_id else None)
            return f(*args, **kwargs)
        return wrapper
    return decorator
