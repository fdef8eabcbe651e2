from .classification import Category, classify_bp
from .validators import validate_bp, validate_reading
from .stats import compute_stats, windowed_trend, filter_by_date_range, category_distribution
