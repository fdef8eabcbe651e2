"""
Blood pressure reading API routes.

Every handler passes the authenticated owner explicitly to the store.
"""
import logging
from flask import Blueprint, request, jsonify, g, Response
from bp_tracker import db
from bp_tracker.errors import NotFound
from bp_tracker.models import User, BloodPressureReading
from bp_tracker.utils.auth import token_required
from bp_tracker.utils.audit_logger import audit_log, audit_phi_access
from bp_tracker.utils.classification import classify_bp, category_info
from bp_tracker.utils.dates import utcnow, parse_iso_datetime, parse_range_end
from bp_tracker.utils.export import generate_readings_csv, generate_readings_pdf
from bp_tracker.utils.stats import (
    STATS_WINDOW, compute_stats, windowed_trend, category_distribution,
    value_extents, latest_delta,
)
from bp_tracker.utils.validators import validate_reading

logger = logging.getLogger(__name__)

readings_bp = Blueprint('readings', __name__)

MAX_LIST_LIMIT = 500
CHART_WINDOW = 30
DISTRIBUTION_WINDOW = 30


def _limit_arg(default):
    """Parse ?limit=N. Returns (limit, error_response)."""
    raw = request.args.get('limit')
    if raw is None:
        return default, None
    try:
        limit = int(raw)
    except ValueError:
        return None, (jsonify({'error': 'limit must be a positive integer'}), 400)
    if limit < 1:
        return None, (jsonify({'error': 'limit must be a positive integer'}), 400)
    return min(limit, MAX_LIST_LIMIT), None


@readings_bp.route('', methods=['GET'])
@token_required
@audit_phi_access('READ', 'reading')
def list_readings():
    """Return the owner's readings, most recent first."""
    limit, error = _limit_arg(50)
    if error:
        return error
    readings = BloodPressureReading.list_for_owner(g.owner_id, limit=limit)
    return jsonify([r.to_dict() for r in readings]), 200


@readings_bp.route('/latest', methods=['GET'])
@token_required
@audit_phi_access('READ', 'reading')
def latest_reading():
    reading = BloodPressureReading.latest_for_owner(g.owner_id)
    if reading is None:
        raise NotFound('No readings found')
    return jsonify(reading.to_dict()), 200


@readings_bp.route('/range', methods=['GET'])
@token_required
@audit_phi_access('READ', 'reading')
def readings_in_range():
    """Readings recorded between startDate and endDate, both inclusive."""
    start_date = request.args.get('startDate')
    end_date = request.args.get('endDate')
    if not start_date or not end_date:
        return jsonify({'error': 'startDate and endDate are required'}), 400

    try:
        start = parse_iso_datetime(start_date)
        end = parse_range_end(end_date)
    except ValueError:
        return jsonify({'error': 'Invalid date format'}), 400

    readings = BloodPressureReading.in_range_for_owner(g.owner_id, start, end)
    return jsonify([r.to_dict() for r in readings]), 200


@readings_bp.route('/<int:reading_id>', methods=['GET'])
@token_required
@audit_phi_access('READ', 'reading')
def get_reading(reading_id):
    reading = BloodPressureReading.get_for_owner(reading_id, g.owner_id)
    if reading is None:
        raise NotFound()
    return jsonify(reading.to_dict()), 200


@readings_bp.route('', methods=['POST'])
@token_required
def create_reading():
    """Validate and store a new reading."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict) or not data:
        return jsonify({'error': 'Request body is required'}), 400

    result = validate_reading(data)
    result.raise_for_failure()

    reading = BloodPressureReading.create_for_owner(g.owner_id, result.values)
    if result.warnings:
        logger.info('Reading %s stored with advisory warnings: %s', reading.id, result.warnings)

    audit_log('CREATE', 'reading', resource_id=str(reading.id),
              details={'warnings': result.warnings})

    return jsonify(reading.to_dict()), 201


@readings_bp.route('/preview', methods=['POST'])
@token_required
def preview_reading():
    """Validation outcome and category for a candidate reading. Nothing is stored."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({'error': 'Request body is required'}), 400

    result = validate_reading(data)
    body = result.to_dict()
    values = result.values
    if 'systolic' in values and 'diastolic' in values:
        body['category'] = category_info(classify_bp(values['systolic'], values['diastolic']))
    else:
        body['category'] = None
    return jsonify(body), 200


@readings_bp.route('/<int:reading_id>', methods=['DELETE'])
@token_required
def delete_reading(reading_id):
    """Delete one of the owner's readings. Other owners' readings are not found."""
    deleted = BloodPressureReading.delete_for_owner(reading_id, g.owner_id)
    if not deleted:
        raise NotFound()
    audit_log('DELETE', 'reading', resource_id=str(reading_id))
    return '', 204


@readings_bp.route('/stats', methods=['GET'])
@token_required
@audit_phi_access('READ', 'reading_stats')
def reading_stats():
    """Aggregate statistics over the most recent readings."""
    readings = BloodPressureReading.list_for_owner(g.owner_id, limit=STATS_WINDOW)
    snapshot = compute_stats(readings, utcnow())
    body = snapshot.to_dict()
    body['latestDelta'] = latest_delta(readings[0] if readings else None, snapshot)
    return jsonify(body), 200


@readings_bp.route('/distribution', methods=['GET'])
@token_required
@audit_phi_access('READ', 'reading_stats')
def reading_distribution():
    """Category breakdown of the last N readings."""
    limit, error = _limit_arg(DISTRIBUTION_WINDOW)
    if error:
        return error
    readings = BloodPressureReading.list_for_owner(g.owner_id, limit=limit)
    return jsonify({
        'windowSize': len(readings),
        'distribution': category_distribution(readings),
    }), 200


@readings_bp.route('/chart', methods=['GET'])
@token_required
@audit_phi_access('READ', 'reading_stats')
def reading_chart():
    """Chart data: readings oldest to newest with the windowed trend."""
    limit, error = _limit_arg(CHART_WINDOW)
    if error:
        return error
    readings = BloodPressureReading.list_for_owner(g.owner_id, limit=limit)
    return jsonify({
        'readings': [
            dict(r.to_dict(), category=classify_bp(r.systolic, r.diastolic).value)
            for r in reversed(readings)
        ],
        'trend': windowed_trend(readings),
        'extents': value_extents(readings),
    }), 200


@readings_bp.route('/search', methods=['GET'])
@token_required
@audit_phi_access('READ', 'reading')
def search_readings():
    """Readings whose notes or tags contain the query, case-insensitively."""
    limit, error = _limit_arg(50)
    if error:
        return error
    readings = BloodPressureReading.list_for_owner(g.owner_id, limit=limit)
    term = (request.args.get('q') or '').strip().lower()
    if term:
        readings = [r for r in readings if _matches(r, term)]
    return jsonify([r.to_dict() for r in readings]), 200


def _matches(reading, term):
    notes = reading.to_dict()['notes'] or ''
    if term in notes.lower():
        return True
    return any(term in tag.lower() for tag in reading.tags or [])


@readings_bp.route('/export.csv', methods=['GET'])
@token_required
def export_csv():
    limit, error = _limit_arg(MAX_LIST_LIMIT)
    if error:
        return error
    readings = BloodPressureReading.list_for_owner(g.owner_id, limit=limit)
    csv_output = generate_readings_csv(readings)

    audit_log('EXPORT', 'reading', details={'format': 'csv', 'count': len(readings)})

    return Response(
        csv_output.getvalue(),
        mimetype='text/csv',
        headers={'Content-Disposition': f'attachment; filename=bp-readings-{utcnow().strftime("%Y-%m-%d")}.csv'}
    )


@readings_bp.route('/export.pdf', methods=['GET'])
@token_required
def export_pdf():
    owner = db.session.get(User, g.owner_id)
    readings = BloodPressureReading.list_for_owner(g.owner_id, limit=STATS_WINDOW)
    snapshot = compute_stats(readings, utcnow())
    pdf_output = generate_readings_pdf(owner, readings, snapshot)

    audit_log('EXPORT', 'reading', details={'format': 'pdf', 'count': len(readings)})

    return Response(
        pdf_output.getvalue(),
        mimetype='application/pdf',
        headers={'Content-Disposition': f'attachment; filename=bp-report-{utcnow().strftime("%Y-%m-%d")}.pdf'}
    )
