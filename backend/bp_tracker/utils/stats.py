"""
Aggregate statistics, windows and trends over blood pressure readings.

Every function takes readings ordered most-recent-first, as returned by
the store, and only reads `systolic`, `diastolic` and `recorded_at`.
"""
from dataclasses import dataclass
from datetime import timedelta
from decimal import Decimal, ROUND_HALF_UP

from bp_tracker.utils.classification import CATEGORY_ORDER, classify_bp

STATS_WINDOW = 100
TREND_THRESHOLD = 2
TREND_WINDOW = 5
LAST_WEEK = timedelta(days=7)

INCREASING = 'increasing'
DECREASING = 'decreasing'
STABLE = 'stable'


@dataclass
class StatsSnapshot:
    total_readings: int = 0
    average_systolic: int = 0
    average_diastolic: int = 0
    last_week_average: dict = None
    trend: str = None

    def to_dict(self) -> dict:
        return {
            'totalReadings': self.total_readings,
            'averageSystolic': self.average_systolic,
            'averageDiastolic': self.average_diastolic,
            'lastWeekAverage': self.last_week_average,
            'trend': self.trend,
        }


def round_half_up(value) -> int:
    """Round to the nearest integer with ties away from zero."""
    return int(Decimal(value).to_integral_value(rounding=ROUND_HALF_UP))


def mean_systolic(readings) -> float:
    return sum(r.systolic for r in readings) / len(readings)


def mean_diastolic(readings) -> float:
    return sum(r.diastolic for r in readings) / len(readings)


def average_pair(readings):
    """Rounded {systolic, diastolic} averages, or None for no readings."""
    if not readings:
        return None
    return {
        'systolic': round_half_up(mean_systolic(readings)),
        'diastolic': round_half_up(mean_diastolic(readings)),
    }


def _direction(difference: float) -> str:
    if difference < -TREND_THRESHOLD:
        return DECREASING
    if difference > TREND_THRESHOLD:
        return INCREASING
    return STABLE


def last_n(readings, n: int):
    if n <= 0:
        return []
    return list(readings[:n])


def last_week(readings, now):
    cutoff = now - LAST_WEEK
    return [r for r in readings if r.recorded_at >= cutoff]


def filter_by_date_range(readings, start, end):
    """Readings with start <= recorded_at <= end, order preserved."""
    if start > end:
        return []
    return [r for r in readings if start <= r.recorded_at <= end]


def half_split_trend(readings):
    """Compare mean systolic of the recent half against the older half.

    The split is by position: the first floor(n/2) readings are the recent
    half. Returns None for fewer than two readings.
    """
    if len(readings) < 2:
        return None
    middle = len(readings) // 2
    recent, older = readings[:middle], readings[middle:]
    return _direction(mean_systolic(recent) - mean_systolic(older))


def windowed_trend(readings, window: int = TREND_WINDOW):
    """Compare the last `window` readings with the `window` before them.

    Used by the chart surface. When there is no older window to compare
    against the trend is stable. Returns None for fewer than two readings.
    """
    if len(readings) < 2:
        return None
    recent = readings[:window]
    older = readings[window:window * 2]
    recent_avg = mean_systolic(recent)
    older_avg = mean_systolic(older) if older else recent_avg
    return _direction(recent_avg - older_avg)


def compute_stats(readings, now) -> StatsSnapshot:
    """Build the stats snapshot for a bounded window of readings.

    The last-week average and the trend are only reported when at least
    one reading falls inside the last seven days before `now`.
    """
    total = len(readings)
    if total == 0:
        return StatsSnapshot()

    snapshot = StatsSnapshot(
        total_readings=total,
        average_systolic=round_half_up(mean_systolic(readings)),
        average_diastolic=round_half_up(mean_diastolic(readings)),
    )

    week = last_week(readings, now)
    if week:
        snapshot.last_week_average = average_pair(week)
        snapshot.trend = half_split_trend(readings)

    return snapshot


def category_distribution(readings):
    """Count readings per category.

    Percentages are kept unrounded; `displayPercentage` is rounded for
    presentation only.
    """
    size = len(readings)
    counts = {category: 0 for category in CATEGORY_ORDER}
    for r in readings:
        counts[classify_bp(r.systolic, r.diastolic)] += 1

    distribution = []
    for category in CATEGORY_ORDER:
        percentage = counts[category] / size * 100 if size else 0.0
        distribution.append({
            'category': category.value,
            'count': counts[category],
            'percentage': percentage,
            'displayPercentage': round_half_up(percentage),
        })
    return distribution


def value_extents(readings) -> dict:
    """Min/max systolic and diastolic, used to scale charts."""
    if not readings:
        return {'systolic': {'min': 120, 'max': 120}, 'diastolic': {'min': 80, 'max': 80}}
    systolic = [r.systolic for r in readings]
    diastolic = [r.diastolic for r in readings]
    return {
        'systolic': {'min': min(systolic), 'max': max(systolic)},
        'diastolic': {'min': min(diastolic), 'max': max(diastolic)},
    }


def latest_delta(latest, snapshot: StatsSnapshot):
    """Difference between the latest reading and the overall averages."""
    if latest is None or snapshot.total_readings == 0:
        return None
    return {
        'systolic': latest.systolic - snapshot.average_systolic,
        'diastolic': latest.diastolic - snapshot.average_diastolic,
    }
