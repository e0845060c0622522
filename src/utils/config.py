# application settings, overridable through environment variables
import os

APP_TITLE = "ITEMKU"
APP_SUB_TITLE = "Your Ultimate Gaming Marketplace"

DEBUG = bool(os.getenv("DEBUG"))
# the TUI owns the terminal, point this at a file to keep the log
LOG_FILE = os.getenv("ITEMKU_LOG_FILE")

DB_PATH = os.getenv("ITEMKU_DB_PATH", "data/itemku.sqlite")
STORE_PATH = os.getenv("ITEMKU_STORE_PATH", "data/local_store.json")

# hard-coded back-office credential, checked before the backend is asked
ADMIN_ID = "admin"
ADMIN_NAME = "Administrator"
ADMIN_EMAIL = os.getenv("ITEMKU_ADMIN_EMAIL", "admin@itemku.com")
ADMIN_PASSWORD = os.getenv("ITEMKU_ADMIN_PASSWORD", "admin")

# "system" theme resolves to this one, terminals do not report a preference
SYSTEM_THEME = os.getenv("ITEMKU_SYSTEM_THEME", "dark")

TAX_RATE = 0.25
ITEMS_PER_PAGE = 12
MAX_SAVED_ACCOUNTS = 5
MIN_PASSWORD_LENGTH = 6
DELIVERY_NOTICE_DELAY = 3.0

PAYMENT_METHODS = {
    "credit-card": "Credit Card",
    "paypal": "PayPal",
    "gopay": "GoPay",
}
