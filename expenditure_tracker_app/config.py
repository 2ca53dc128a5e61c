"""Configuration for the expenditure tracker.

Values are module-level constants; paths and the log level can be
overridden through environment variables.
"""

import os

DATA_FILE = os.getenv("EXPENDITURE_TRACKER_DATA_FILE", "expenditures.json")
LOG_FILE = os.getenv("EXPENDITURE_TRACKER_LOG_FILE", "expenditure_tracker.log")
LOG_LEVEL = os.getenv("EXPENDITURE_TRACKER_LOG_LEVEL", "INFO")

# List view
PAGE_SIZE = 10
STORED_COMMENT_LIMIT = 15
DISPLAY_COMMENT_LIMIT = 30

# Chart window: 12 months ending at the month containing today + 15 days
CHART_MONTHS = 12
CHART_ANCHOR_DAYS = 15

CURRENCY_SYMBOL = "₹"
DATE_FORMAT = "%Y-%m-%d"
