"""Keyword-based category inference for outline items.

Fixed vocabularies checked in priority order: food > entertainment > culture >
transit, defaulting to activity. First matching group wins.
"""

from tripsheet.app.models.common import Category

FOOD_TIMES: frozenset[str] = frozenset({"breakfast", "lunch", "dinner", "brunch"})

KEYWORDS: tuple[tuple[Category, tuple[str, ...]], ...] = (
    (Category.food, ("coffee", "pizza", "restaurant", "delicatessen")),
    (Category.entertainment, ("hamilton", "theatre", "jazz", "vanguard", "show")),
    (Category.culture, ("museum", "memorial", "gallery")),
    (Category.transit, ("subway", "train", "taxi", "uber")),
)


def infer_category(time_label: str | None, description: str) -> Category:
    """Infer an item's category from its time label and description.

    Args:
        time_label: Time token as written, or None
        description: Item description

    Returns:
        First matching category, or Category.activity
    """
    if (time_label or "").strip().lower() in FOOD_TIMES:
        return Category.food

    text = description.lower()
    for category, words in KEYWORDS:
        if any(word in text for word in words):
            return category
    return Category.activity
