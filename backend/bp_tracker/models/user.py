"""
Owner model. Every reading belongs to exactly one owner.
"""
from bp_tracker import db
from bp_tracker.utils.dates import utcnow, isoformat_or_none


class User(db.Model):
    """
    Owner of blood pressure readings.
    Identity only: there are no credentials stored here, callers prove
    ownership with a signed bearer token.
    """
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(80), unique=True, nullable=False, index=True)
    created_at = db.Column(db.DateTime, default=utcnow)

    readings = db.relationship('BloodPressureReading', backref='owner', lazy='dynamic',
                               order_by='BloodPressureReading.recorded_at.desc()')

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
            'createdAt': isoformat_or_none(self.created_at),
        }

    @staticmethod
    def find_by_username(username: str):
        return User.query.filter_by(username=username.strip()).first()

    @staticmethod
    def get_or_create(username: str):
        """Return the owner with this username, creating it if missing."""
        user = User.find_by_username(username)
        if user is None:
            user = User(username=username.strip())
            db.session.add(user)
            db.session.commit()
        return user

    def __repr__(self):
        return f'<User {self.id}>'
