from .user import User
from .reading import BloodPressureReading

__all__ = ['User', 'BloodPressureReading']
