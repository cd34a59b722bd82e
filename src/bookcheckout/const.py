import importlib.metadata

try:
    _version = importlib.metadata.version("bookcheckout")
except importlib.metadata.PackageNotFoundError:
    _version = "0.0.0"

USER_AGENT = f"bookcheckout/{_version}"
TIMEOUT = 10  # seconds, for calls to the enrichment api

GOOGLE_BOOKS_URL = "https://www.googleapis.com/books/v1/volumes"

NO_ISBN = "No ISBN"  # sentinel used when a volume carries no identifier
LOAN_PERIOD_DAYS = 7
MAX_ACTIVE_LOANS = 1  # per user
RECOMMENDATION_LIMIT = 10

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"  # same as sqlite's CURRENT_TIMESTAMP
