"""
Owner identity via signed JWT bearer tokens.
"""
import os
import secrets
import logging
import jwt
from datetime import datetime, timedelta, timezone
from functools import wraps
from flask import request, jsonify, g

logger = logging.getLogger(__name__)

DEFAULT_TOKEN_EXPIRES = 86400


def _secret() -> str:
    secret = os.getenv('JWT_SECRET_KEY')
    if not secret:
        raise RuntimeError('JWT_SECRET_KEY environment variable is required')
    return secret


def generate_owner_token(owner_id: int, expires_in: int = None) -> str:
    """Generate a JWT identifying the owner of a set of readings."""
    if expires_in is None:
        expires_in = int(os.getenv('JWT_ACCESS_TOKEN_EXPIRES', DEFAULT_TOKEN_EXPIRES))
    now = datetime.now(timezone.utc)
    payload = {
        'owner_id': owner_id,
        'jti': secrets.token_hex(16),
        'exp': now + timedelta(seconds=expires_in),
        'iat': now,
    }
    return jwt.encode(payload, _secret(), algorithm='HS256')


def decode_token(token: str) -> dict:
    """Decode and validate a JWT token. Returns None if invalid or expired."""
    try:
        return jwt.decode(token, _secret(), algorithms=['HS256'])
    except jwt.ExpiredSignatureError:
        logger.info('Rejected expired owner token')
        return None
    except jwt.InvalidTokenError:
        return None


def token_required(f):
    """Decorator to require a valid owner token for a route.

    The owner id is stored on g.owner_id; handlers pass it explicitly to
    every store call.
    """
    @wraps(f)
    def wrapper(*args, **kwargs):
        auth_header = request.headers.get('Authorization')
        if not auth_header:
            return jsonify({'error': 'Missing authorization header'}), 401

        parts = auth_header.split()
        if len(parts) != 2 or parts[0].lower() != 'bearer':
            return jsonify({'error': 'Invalid authorization header format'}), 401

        payload = decode_token(parts[1])
        if not payload or not isinstance(payload.get('owner_id'), int):
            return jsonify({'error': 'Invalid or expired token'}), 401

        from bp_tracker import db
        from bp_tracker.models.user import User
        if db.session.get(User, payload['owner_id']) is None:
            return jsonify({'error': 'Unknown owner'}), 401

        g.owner_id = payload['owner_id']
        g.token_jti = payload.get('jti')

        return f(*args, **kwargs)
    return wrapper
