from expenditure_tracker_app.config import (CURRENCY_SYMBOL,
                                            DISPLAY_COMMENT_LIMIT,
                                            STORED_COMMENT_LIMIT)

ELLIPSIS = "..."

CHART_COLORS = [
    "#4e79a7", "#f28e2c", "#e15759", "#76b7b2", "#59a14f", "#edc949",
    "#af7aa1", "#ff9da7", "#9c755f", "#bab0ab", "#1f77b4", "#17becf",
    "#bcbd22", "#7f7f7f",
]


def truncate_text(text, limit):
    """Return text unchanged if it fits, else its first limit-3 chars plus '...'."""
    if text is None:
        return None
    if limit < len(ELLIPSIS):
        raise ValueError(f"limit must be at least {len(ELLIPSIS)}")
    if len(text) <= limit:
        return text
    return text[: limit - len(ELLIPSIS)] + ELLIPSIS


def truncate_comment(comment):
    """Truncation applied before a comment is stored. Empty comments become None."""
    if not comment:
        return None
    return truncate_text(comment, STORED_COMMENT_LIMIT)


def truncate_for_display(comment):
    if not comment:
        return ""
    return truncate_text(comment, DISPLAY_COMMENT_LIMIT)


def parse_amount(value):
    """Parse a user-entered amount. Raises ValueError when it is not a non-negative number."""
    if isinstance(value, bool):
        raise ValueError("Amount must be a valid number")
    try:
        amount = float(str(value).strip()) if isinstance(value, str) else float(value)
    except (ValueError, TypeError):
        raise ValueError("Amount must be a valid number")
    if amount != amount or amount in (float("inf"), float("-inf")):
        raise ValueError("Amount must be a valid number")
    if amount < 0:
        raise ValueError("Amount cannot be negative")
    return amount


def format_currency(amount):
    return f"{CURRENCY_SYMBOL}{amount:,.2f}"


def calculate_subtotal(records):
    """Return subtotal of a list of expenditure records."""
    return sum(rec.get("amount", 0.0) or 0.0 for rec in records)


def format_expenditure_row(record):
    """Return a dict for one list row."""
    return {
        "day": str(record.get("date", ""))[8:10].lstrip("0"),
        "category": record.get("category") or "Unknown",
        "comment": truncate_for_display(record.get("comment")),
        "amount": format_currency(record.get("amount", 0.0) or 0.0),
    }


def format_group_header(bucket):
    """Return (title, total text) for a grouped bucket header."""
    return bucket.title, f"Total: {format_currency(bucket.total_amount)}"


def format_total_row(title, subtotal, is_grand=False):
    """Return a dict for subtotal or grand total row."""
    if is_grand:
        return {
            "group": "Grand Total",
            "amount": round(subtotal, 2),
            "comment": "",
            "is_total": True,
        }
    return {
        "group": title,
        "amount": round(subtotal, 2),
        "comment": "Subtotal",
        "is_total": True,
    }


def assign_category_colors(categories):
    """Stable colour per category, following vocabulary order."""
    return {
        category: CHART_COLORS[i % len(CHART_COLORS)]
        for i, category in enumerate(categories)
    }
