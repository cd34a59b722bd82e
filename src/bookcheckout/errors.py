class BookcheckoutError(Exception):
    """Base exception."""


# *** client-side errors ***


class PermissionDeniedError(BookcheckoutError):
    """Raised when a student attempts an administrator-only operation."""


class CheckoutLimitError(BookcheckoutError):
    """Raised when a user already holds the maximum number of active loans."""


class NotAvailableError(BookcheckoutError):
    """Raised when no copies of a title are left to check out."""


class LoanAccessError(BookcheckoutError):
    """Raised when a loan could not be accessed.

    The loan does not exist, was already returned, or belongs to another
    user.
    """


# *** server-side errors ***


class StoreUnavailableError(BookcheckoutError):
    """Raised when the database can not be opened or a statement fails.

    There is no retry; restarting the application is the expected remedy.
    """


class IncompatibleSourceError(BookcheckoutError):
    """Raised for any general errors in parsing an enrichment response.

    Args:
        msg         Descriptive message of the error
        body        Response body that was used in parsing and caused error
    """

    def __init__(self, msg, body: str):
        super().__init__(msg)
        self.body = body
