# ruff: noqa: F401
import importlib.metadata

try:
    # __package__ allows for the case where __name__ is "__main__"
    __version__ = importlib.metadata.version(__package__ or __name__)
except importlib.metadata.PackageNotFoundError:
    __version__ = "0.0.0"


# So user can do e.g.
#   from bookcheckout import Library, Actor
from .errors import (
    BookcheckoutError,
    CheckoutLimitError,
    IncompatibleSourceError,
    LoanAccessError,
    NotAvailableError,
    PermissionDeniedError,
    StoreUnavailableError,
)
from .google_books import GoogleBooks
from .library import Library
from .models import Actor, Loan, Recommendations, Role, Title
