import importlib.metadata
import subprocess
import sys

import pytest

from bookcheckout.__main__ import main
from bookcheckout.catalog import Catalog
from bookcheckout.models import Title
from bookcheckout.store import Store


def test_bookcheckout_available_imports():
    import bookcheckout

    # make sure we don't expose too few, or too much
    imps = [i for i in dir(bookcheckout) if not i.startswith("__")]
    assert set(imps) == set(
        [
            "Library",
            "GoogleBooks",
            "Actor",
            "Role",
            "Title",
            "Loan",
            "Recommendations",
            "BookcheckoutError",
            "CheckoutLimitError",
            "IncompatibleSourceError",
            "LoanAccessError",
            "NotAvailableError",
            "PermissionDeniedError",
            "StoreUnavailableError",
            # things we actually don't want to have exported
            "availability",
            "catalog",
            "circulation",
            "const",
            "errors",
            "google_books",
            "library",
            "models",
            "parsers",
            "recommendations",
            "store",
            "importlib",
        ]
    )


def test_cli():
    cproc = subprocess.run(["bookcheckout", "--version"], capture_output=True, text=True)
    ver = importlib.metadata.version("bookcheckout")  # from pyproject.toml file
    assert f"bookcheckout {ver}" in cproc.stdout
    assert cproc.returncode == 0

    cproc = subprocess.run(["bookcheckout", "--help"])
    assert cproc.returncode == 0


class TestCliCommands:
    def test_availability(self, tmp_path, monkeypatch, capsys):
        monkeypatch.chdir(tmp_path)  # no ini file around
        db = str(tmp_path / "test.db")
        store = Store(db)
        Catalog(store).upsert_title(Title("9780142410370", "Matilda", copies_total=3))
        store.close()

        monkeypatch.setattr(
            sys, "argv", ["bookcheckout", "availability", "--db", db, "9780142410370"]
        )
        main()

        assert "9780142410370: 3 available" in capsys.readouterr().out

    def test_user_is_required_for_loans(self, tmp_path, monkeypatch, capsys):
        monkeypatch.chdir(tmp_path)
        db = str(tmp_path / "test.db")
        monkeypatch.setattr(sys, "argv", ["bookcheckout", "loans", "--db", db])

        with pytest.raises(SystemExit) as e:
            main()

        assert e.value.code == -1
        assert "Parameter 'user' is required" in capsys.readouterr().out

    def test_user_from_ini_file(self, tmp_path, monkeypatch, capsys):
        monkeypatch.chdir(tmp_path)
        db = str(tmp_path / "test.db")
        (tmp_path / "bookcheckout.ini").write_text(
            f"[DEFAULT]\ndb = {db}\nuser = 5\nusername = emma\n"
        )
        monkeypatch.setattr(sys, "argv", ["bookcheckout", "recommend"])

        main()

        out = capsys.readouterr().out
        assert "Retrieving recommendations for user 5" in out
        assert "Popular with other readers" in out

    def test_admin_command_as_student_fails(self, tmp_path, monkeypatch, capsys):
        monkeypatch.chdir(tmp_path)
        db = str(tmp_path / "test.db")
        monkeypatch.setattr(
            sys, "argv", ["bookcheckout", "all-loans", "--db", db, "--user", "3"]
        )

        with pytest.raises(SystemExit) as e:
            main()

        assert e.value.code == 1
        assert "Only administrators can list all checkouts" in capsys.readouterr().out
