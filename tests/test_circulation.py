from datetime import datetime, timedelta

import pytest

from bookcheckout.circulation import Ledger
from bookcheckout.errors import (
    CheckoutLimitError,
    LoanAccessError,
    NotAvailableError,
    PermissionDeniedError,
)
from bookcheckout.models import Actor, Loan, Title

MATILDA = Title("9780142410370", "Matilda", "Roald Dahl", cover_url="matilda.jpg")
BFG = Title("9780142410387", "The BFG", "Roald Dahl")
DUNE = Title("9780441172719", "Dune", "Frank Herbert")


class TestCheckout:
    def test_checkout_records_loan_with_snapshot(self, ledger, student, now):
        loan = ledger.checkout(student, MATILDA, now)

        assert loan == Loan(
            id=loan.id,
            user_id=1,
            isbn="9780142410370",
            title="Matilda",
            author="Roald Dahl",
            cover_url="matilda.jpg",
            checkout_date=now,
            due_date=now + timedelta(days=7),
            returned=False,
            return_date=None,
        )

    def test_checkout_observes_title_into_catalog(self, ledger, catalog, student, now):
        ledger.checkout(student, MATILDA, now)

        assert catalog.get_title(MATILDA.isbn).title == "Matilda"

    def test_due_date_is_not_recomputed(self, store, catalog, student, now):
        ledger = Ledger(store, catalog, loan_period_days=7)
        loan = ledger.checkout(student, MATILDA, now)

        ledger.loan_period = timedelta(days=21)

        assert ledger.get_loan(loan.id).due_date == now + timedelta(days=7)

    def test_default_limit_is_one_active_loan(self, store, catalog, student, now):
        ledger = Ledger(store, catalog)
        ledger.checkout(student, MATILDA, now)

        with pytest.raises(CheckoutLimitError, match=r".*more than 1 book\(s\) at a time.*"):
            ledger.checkout(student, BFG, now)

    def test_limit_counts_only_active_loans(self, store, catalog, student, now):
        ledger = Ledger(store, catalog)
        loan = ledger.checkout(student, MATILDA, now)
        ledger.return_loan(student, loan.id, now)

        assert ledger.checkout(student, BFG, now).isbn == BFG.isbn

    def test_title_without_isbn_can_not_be_checked_out(self, ledger, student, now):
        with pytest.raises(ValueError, match=r".*no isbn.*"):
            ledger.checkout(student, Title("No ISBN", "Mystery"), now)

    def test_isbn_with_dashes_shares_copies(self, ledger, catalog, student, now):
        ledger.checkout(Actor(2), MATILDA, now)

        with pytest.raises(NotAvailableError):
            ledger.checkout(student, Title("978-0-14-241037-0", "Matilda", "Roald Dahl"), now)

        assert len(catalog.list_titles()) == 1

    def test_failed_checkout_leaves_no_loan(self, ledger, student, now):
        ledger.checkout(Actor(2), MATILDA, now)

        with pytest.raises(NotAvailableError):
            ledger.checkout(student, MATILDA, now)

        assert ledger.user_history(student.id) == []


class TestReturnLoan:
    def test_return_flags_loan(self, ledger, student, now):
        loan = ledger.checkout(student, MATILDA, now)
        later = now + timedelta(days=3)

        returned = ledger.return_loan(student, loan.id, later)

        assert returned.returned is True
        assert returned.return_date == later
        assert returned.due_date == loan.due_date

    def test_return_twice_fails(self, ledger, student, now):
        loan = ledger.checkout(student, MATILDA, now)
        ledger.return_loan(student, loan.id, now)

        with pytest.raises(LoanAccessError, match=r".*already returned.*"):
            ledger.return_loan(student, loan.id, now)

    def test_return_unknown_loan_fails(self, ledger, student):
        with pytest.raises(LoanAccessError, match=r".*not found.*"):
            ledger.return_loan(student, 12345)

    def test_student_can_not_return_loan_of_other_user(self, ledger, student, now):
        loan = ledger.checkout(Actor(2), MATILDA, now)

        with pytest.raises(LoanAccessError):
            ledger.return_loan(student, loan.id, now)

    def test_admin_can_return_loan_of_other_user(self, ledger, admin, now):
        loan = ledger.checkout(Actor(2), MATILDA, now)

        assert ledger.return_loan(admin, loan.id, now).returned is True


class TestDeleteLoan:
    def test_admin_deletes_loan(self, ledger, admin, student, now):
        loan = ledger.checkout(student, MATILDA, now)

        ledger.delete_loan(admin, loan.id)

        assert ledger.get_loan(loan.id) is None
        assert ledger.active_loan_count(MATILDA.isbn) == 0

    def test_student_can_not_delete(self, ledger, student, now):
        loan = ledger.checkout(student, MATILDA, now)

        with pytest.raises(PermissionDeniedError):
            ledger.delete_loan(student, loan.id)

    def test_delete_unknown_loan_fails(self, ledger, admin):
        with pytest.raises(LoanAccessError):
            ledger.delete_loan(admin, 999)


class TestListings:
    def test_user_loans_shows_latest_loan_per_title(self, ledger, student, now):
        first = ledger.checkout(student, MATILDA, now)
        ledger.return_loan(student, first.id, now + timedelta(days=1))
        ledger.checkout(student, DUNE, now + timedelta(days=2))
        second = ledger.checkout(student, MATILDA, now + timedelta(days=3))

        loans = ledger.user_loans(student.id)

        assert loans[0].id == second.id
        assert [loan.isbn for loan in loans] == [MATILDA.isbn, DUNE.isbn]
        assert len(ledger.user_history(student.id)) == 3

    def test_all_loans_includes_usernames(self, ledger, admin, student, now):
        ledger.checkout(student, MATILDA, now)
        ledger.checkout(Actor(2, username="noah"), DUNE, now + timedelta(hours=1))
        ledger.checkout(Actor(3), BFG, now + timedelta(hours=2))

        loans = ledger.all_loans(admin)

        assert [(loan.username, loan.title) for loan in loans] == [
            ("", "The BFG"),
            ("noah", "Dune"),
            ("emma", "Matilda"),
        ]

    @pytest.mark.parametrize(
        "search, expected",
        [
            ("emma", ["Matilda"]),
            ("dune", ["Dune"]),
            ("DAHL", ["The BFG", "Matilda"]),
            ("  ", ["The BFG", "Dune", "Matilda"]),
        ],
    )
    def test_all_loans_search(self, ledger, admin, student, now, search, expected):
        ledger.checkout(student, MATILDA, now)
        ledger.checkout(Actor(2, username="noah"), DUNE, now + timedelta(hours=1))
        ledger.checkout(Actor(3), BFG, now + timedelta(hours=2))

        assert [loan.title for loan in ledger.all_loans(admin, search)] == expected

    def test_all_loans_is_admin_only(self, ledger, student):
        with pytest.raises(PermissionDeniedError):
            ledger.all_loans(student)

    def test_checkout_counts_include_returned_loans(self, ledger, student, now):
        loan = ledger.checkout(student, MATILDA, now)
        ledger.return_loan(student, loan.id, now)
        ledger.checkout(Actor(2), MATILDA, now)
        ledger.checkout(Actor(2), DUNE, now)

        assert ledger.checkout_counts() == {MATILDA.isbn: 2, DUNE.isbn: 1}
        assert ledger.active_loan_count(MATILDA.isbn) == 1


class TestLoanStatus:
    @pytest.mark.parametrize(
        "today, expected",
        [
            (datetime(2025, 3, 1, 10, 0), "Due in 7 days"),
            (datetime(2025, 3, 7, 10, 0), "Due tomorrow"),
            (datetime(2025, 3, 8, 10, 0), "Due today!"),
            (datetime(2025, 3, 10, 10, 0), "Overdue by 2 days!"),
        ],
    )
    def test_status_text(self, today, expected):
        loan = Loan(1, 1, "123", due_date=datetime(2025, 3, 8, 10, 0))
        assert loan.status_text(today) == expected

    def test_returned_status(self):
        loan = Loan(1, 1, "123", due_date=datetime(2025, 3, 8), returned=True)
        assert loan.status_text(datetime(2030, 1, 1)) == "Returned"
