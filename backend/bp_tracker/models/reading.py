"""
Blood Pressure Reading model and owner-scoped store operations.
"""
import logging
from sqlalchemy.exc import SQLAlchemyError
from bp_tracker import db
from bp_tracker.errors import StoreFailure
from bp_tracker.utils.dates import utcnow, isoformat_or_none
from bp_tracker.utils.encryption import encrypt_phi, decrypt_phi

logger = logging.getLogger(__name__)

DEFAULT_LIST_LIMIT = 50


class BloodPressureReading(db.Model):
    """
    Blood pressure reading model.
    Readings are immutable once stored; they can only be deleted, and only
    by their owner. Notes are free text and are encrypted at rest.
    """
    __tablename__ = 'blood_pressure_readings'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)

    # Blood pressure values
    systolic = db.Column(db.Integer, nullable=False)
    diastolic = db.Column(db.Integer, nullable=False)
    pulse = db.Column(db.Integer, nullable=True)

    _notes_encrypted = db.Column('notes', db.Text, nullable=True)
    tags = db.Column(db.JSON, nullable=True)

    # Timestamps
    recorded_at = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    @property
    def notes(self) -> str:
        return decrypt_phi(self._notes_encrypted) if self._notes_encrypted else self._notes_encrypted

    @notes.setter
    def notes(self, value: str):
        self._notes_encrypted = encrypt_phi(value) if value else value

    def to_dict(self):
        try:
            notes = self.notes
        except Exception:
            logger.error('Decryption error for reading_id=%s field=notes', self.id, exc_info=True)
            notes = None
        return {
            'id': self.id,
            'ownerId': self.user_id,
            'systolic': self.systolic,
            'diastolic': self.diastolic,
            'pulse': self.pulse,
            'notes': notes,
            'tags': list(self.tags) if self.tags is not None else None,
            'recordedAt': isoformat_or_none(self.recorded_at),
            'createdAt': isoformat_or_none(self.created_at),
        }

    @staticmethod
    def _owner_query(owner_id):
        return BloodPressureReading.query.filter_by(user_id=owner_id)

    @staticmethod
    def create_for_owner(owner_id: int, values: dict):
        """Persist a validated reading. recorded_at defaults to now."""
        now = utcnow()
        reading = BloodPressureReading(
            user_id=owner_id,
            systolic=values['systolic'],
            diastolic=values['diastolic'],
            pulse=values.get('pulse'),
            tags=values.get('tags'),
            recorded_at=values.get('recorded_at') or now,
            created_at=now,
        )
        reading.notes = values.get('notes')
        try:
            db.session.add(reading)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            raise StoreFailure('Failed to create blood pressure reading') from e
        return reading

    @staticmethod
    def list_for_owner(owner_id: int, limit: int = DEFAULT_LIST_LIMIT):
        """Most recent readings first."""
        try:
            return (BloodPressureReading._owner_query(owner_id)
                    .order_by(BloodPressureReading.recorded_at.desc(),
                              BloodPressureReading.id.desc())
                    .limit(limit)
                    .all())
        except SQLAlchemyError as e:
            db.session.rollback()
            raise StoreFailure('Failed to fetch blood pressure readings') from e

    @staticmethod
    def get_for_owner(reading_id: int, owner_id: int):
        try:
            return BloodPressureReading._owner_query(owner_id).filter_by(id=reading_id).first()
        except SQLAlchemyError as e:
            db.session.rollback()
            raise StoreFailure('Failed to fetch blood pressure reading') from e

    @staticmethod
    def latest_for_owner(owner_id: int):
        readings = BloodPressureReading.list_for_owner(owner_id, limit=1)
        return readings[0] if readings else None

    @staticmethod
    def in_range_for_owner(owner_id: int, start, end):
        """Readings with start <= recorded_at <= end, most recent first."""
        if start > end:
            return []
        try:
            return (BloodPressureReading._owner_query(owner_id)
                    .filter(BloodPressureReading.recorded_at >= start,
                            BloodPressureReading.recorded_at <= end)
                    .order_by(BloodPressureReading.recorded_at.desc(),
                              BloodPressureReading.id.desc())
                    .all())
        except SQLAlchemyError as e:
            db.session.rollback()
            raise StoreFailure('Failed to fetch readings') from e

    @staticmethod
    def delete_for_owner(reading_id: int, owner_id: int) -> bool:
        """Delete a reading owned by owner_id. False if absent or not owned."""
        try:
            count = (BloodPressureReading._owner_query(owner_id)
                     .filter_by(id=reading_id)
                     .delete())
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            raise StoreFailure('Failed to delete reading') from e
        return count > 0

    def __repr__(self):
        return f'<BloodPressureReading {self.id}: {self.systolic}/{self.diastolic}>'
