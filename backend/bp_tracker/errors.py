"""
Error kinds raised by the store and request handlers, and their JSON mapping.
"""
import logging
from flask import jsonify

logger = logging.getLogger(__name__)

SYSTOLIC_GT_DIASTOLIC = 'systolic_gt_diastolic'


class BPTrackerError(Exception):
    """Base class for errors surfaced to API callers."""
    status_code = 500

    def __init__(self, message: str = None):
        super().__init__(message)
        self.message = message or 'Internal error'

    def to_dict(self) -> dict:
        return {'error': self.message}


class ValidationError(BPTrackerError):
    """Malformed or out-of-bound input fields, with per-field detail."""
    status_code = 400

    def __init__(self, errors: dict):
        super().__init__('Validation failed')
        self.errors = errors

    def to_dict(self) -> dict:
        return {'error': self.message, 'details': self.errors}


class BusinessRuleViolation(BPTrackerError):
    """A well-formed reading that breaks a domain rule (systolic <= diastolic)."""
    status_code = 400

    def __init__(self, message: str, rule: str = SYSTOLIC_GT_DIASTOLIC):
        super().__init__(message)
        self.rule = rule

    def to_dict(self) -> dict:
        return {'error': self.message, 'rule': self.rule}


class NotFound(BPTrackerError):
    """Reading absent or not owned by the caller."""
    status_code = 404

    def __init__(self, message: str = 'Reading not found'):
        super().__init__(message)


class StoreFailure(BPTrackerError):
    """Persistence layer error. Details are logged, never returned."""
    status_code = 500

    def __init__(self, message: str = 'Failed to access blood pressure readings'):
        super().__init__(message)


def register_error_handlers(app):
    """Map error kinds to JSON responses."""

    @app.errorhandler(BPTrackerError)
    def handle_tracker_error(error):
        if isinstance(error, StoreFailure):
            logger.error('Store failure: %s', error.message, exc_info=error.__cause__)
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(404)
    def handle_not_found(error):
        return jsonify({'error': 'Not found'}), 404

    @app.errorhandler(405)
    def handle_method_not_allowed(error):
        return jsonify({'error': 'Method not allowed'}), 405

    @app.errorhandler(413)
    def handle_too_large(error):
        return jsonify({'error': 'Request body too large'}), 413
