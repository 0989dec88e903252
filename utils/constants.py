APP_NAME = "SmartSpend"
DB_FILE = "smartspend.db"

DATE_FORMAT = "%Y-%m-%d"

# Appended to the description of every transaction created from a rule
RECURRING_MARKER = "(Recurring)"

TRANSACTION_TYPES = ["expense", "income", "investment"]
FREQUENCIES = ["daily", "weekly", "monthly", "yearly"]

# Unattended daily run: 00:00 IST, hard ceiling of 9 minutes
DEFAULT_TIMEZONE = "Asia/Kolkata"
DAILY_RUN_TIMEOUT_SECONDS = 540

UPCOMING_BILLS_LIMIT = 3
URGENT_BILL_DAYS = 3

CURRENCY_SYMBOL = "₹"
