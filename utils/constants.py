APP_NAME = "Recurring Ledger"
DB_FILE = "recurring.db"

DATE_FORMAT = "%Y-%m-%d"
DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"

DEFAULT_LOG_LEVEL = "INFO"
CLAIM_TTL_SECONDS = 300        # lease on a rule while a run works on it
UPCOMING_DAYS = 30

FREQUENCIES = ["daily", "weekly", "monthly", "yearly"]

EXPENSE_CATEGORIES = [
    "food",
    "transport",
    "shopping",
    "housing",
    "utilities",
    "entertainment",
    "healthcare",
    "education",
    "travel",
    "subscriptions",
    "other",
]

INCOME_CATEGORIES = [
    "salary",
    "freelance",
    "investments",
    "gifts",
    "side_income",
    "interest",
    "other",
]

CATEGORIES_BY_TYPE = {
    "expense": EXPENSE_CATEGORIES,
    "income":  INCOME_CATEGORIES,
}

PAYMENT_METHODS = ["cash", "card", "upi", "bank_transfer", "other"]
