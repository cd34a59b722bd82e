# ruff: noqa: T201, T203  # ignore print statements
"""Provides a command line interface for this package.

A __main__.py file is executed when the package itself is invoked directly from
the command line using the -m flag, that is:
    python -m bookcheckout
"""

import argparse
import configparser
import logging
import pprint as pp
import sys

from bookcheckout import Actor, BookcheckoutError, GoogleBooks, Library, Role, __version__

CONFIG_FILE = "bookcheckout.ini"
DEFAULT_DB = "bookcheckout.db"


def _library(args: argparse.Namespace) -> Library:
    return Library(args.db, enrichment=GoogleBooks(api_key=args.api_key))


def _actor(args: argparse.Namespace) -> Actor:
    return Actor(int(args.user), Role(args.role), args.username or "")


def _do_search(args: argparse.Namespace):
    print(f"Searching books for: '{args.query}' ...")
    with _library(args) as lib:
        for title, available in lib.search(args.query):
            print(f"{title.isbn:<15} {available} available  {title.title} ({title.author})")


def _do_lookup(args: argparse.Namespace):
    print(f"Looking up isbn: {args.isbn} ...")
    with _library(args) as lib:
        pp.pprint(lib.lookup(args.isbn))


def _do_checkout(args: argparse.Namespace):
    print(f"Checking out isbn {args.isbn} for user {args.user} ...")
    with _library(args) as lib:
        loan = lib.checkout(_actor(args), args.isbn)
        print(f"Loan {loan.id}: '{loan.title}', due {loan.due_date:%Y-%m-%d}")


def _do_return(args: argparse.Namespace):
    print(f"Returning loan {args.loanid} ...")
    with _library(args) as lib:
        loan = lib.return_loan(_actor(args), args.loanid)
        print(f"Loan {loan.id}: {loan.status_text()}")


def _do_delete(args: argparse.Namespace):
    print(f"Deleting loan {args.loanid} ...")
    with _library(args) as lib:
        lib.delete_loan(_actor(args), args.loanid)
        print("Deleted")


def _do_loans(args: argparse.Namespace):
    print(f"Retrieving loans for user {args.user} ...")
    with _library(args) as lib:
        for loan in lib.my_loans(_actor(args)):
            print(f"{loan.id:>5} {loan.title} ({loan.author}) - {loan.status_text()}")


def _do_all_loans(args: argparse.Namespace):
    print("Retrieving all loans ...")
    with _library(args) as lib:
        for loan in lib.all_loans(_actor(args), args.search):
            print(
                f"{loan.id:>5} {loan.username or loan.user_id:<12} {loan.title} "
                f"({loan.author}) - {loan.status_text()}"
            )


def _do_availability(args: argparse.Namespace):
    with _library(args) as lib:
        print(f"{args.isbn}: {lib.get_availability(args.isbn)} available")


def _do_recommend(args: argparse.Namespace):
    print(f"Retrieving recommendations for user {args.user} ...")
    with _library(args) as lib:
        recs = lib.get_recommendations(_actor(args))
        if recs.mode == "popular":
            print("Popular with other readers:")
        else:
            print("Because of what you read before:")
        for title in recs.titles:
            print(f"  {title.isbn:<15} {title.title} ({title.author})")


def _do_copies(args: argparse.Namespace):
    with _library(args) as lib:
        title = lib.set_copies_total(_actor(args), args.isbn, args.copies)
        print(f"{title.isbn}: {title.copies_total} copies")


def main():
    # common parser, see https://stackoverflow.com/a/33646419/50899
    common_parser = argparse.ArgumentParser(add_help=False)
    common_parser.add_argument("-d", "--db", default=DEFAULT_DB, help="database file")
    common_parser.add_argument("-u", "--user", help="id of the acting user")
    common_parser.add_argument("-n", "--username", help="display name of the acting user")
    common_parser.add_argument(
        "-r", "--role", default="student", choices=[r.value for r in Role]
    )
    common_parser.add_argument("-k", "--api_key", help="Google Books api key")

    parser = argparse.ArgumentParser(
        prog="bookcheckout",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        description=(
            "Search books, check them out and return them, and get reading\n"
            "recommendations, for a classroom or small library.\n\n"
            "See the help of a subcommando for all parameters, e.g.\n"
            "`bookcheckout checkout --help`\n"
            "More convenient is creating a `bookcheckout.ini` file containing the parameters:\n"
            "   [DEFAULT]\n"
            "   db = classroom.db\n"
            "   user = 12\n"
            "   username = emma\n"
            "   role = student"
        ),
    )
    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version="%(prog)s {version}".format(version=__version__),
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="show debug logging")
    subparsers = parser.add_subparsers(required=True)

    sub = subparsers.add_parser("search", parents=[common_parser], help="search books")
    sub.add_argument("query")
    sub.set_defaults(func=_do_search, needs_user=False)
    sub = subparsers.add_parser("lookup", parents=[common_parser], help="look up book by isbn")
    sub.add_argument("isbn")
    sub.set_defaults(func=_do_lookup, needs_user=False)
    sub = subparsers.add_parser(
        "availability", parents=[common_parser], help="show available copies of a book"
    )
    sub.add_argument("isbn")
    sub.set_defaults(func=_do_availability, needs_user=False)
    sub = subparsers.add_parser("checkout", parents=[common_parser], help="check out a book")
    sub.add_argument("isbn")
    sub.set_defaults(func=_do_checkout, needs_user=True)
    sub = subparsers.add_parser("return", parents=[common_parser], help="return a book")
    sub.add_argument("loanid", type=int)
    sub.set_defaults(func=_do_return, needs_user=True)
    sub = subparsers.add_parser(
        "delete", parents=[common_parser], help="delete a loan record (admin)"
    )
    sub.add_argument("loanid", type=int)
    sub.set_defaults(func=_do_delete, needs_user=True)
    sub = subparsers.add_parser("loans", parents=[common_parser], help="list your books")
    sub.set_defaults(func=_do_loans, needs_user=True)
    sub = subparsers.add_parser(
        "all-loans", parents=[common_parser], help="list all loans (admin)"
    )
    sub.add_argument("search", nargs="?", default="")
    sub.set_defaults(func=_do_all_loans, needs_user=True)
    sub = subparsers.add_parser(
        "recommend", parents=[common_parser], help="recommend books for you"
    )
    sub.set_defaults(func=_do_recommend, needs_user=True)
    sub = subparsers.add_parser(
        "copies", parents=[common_parser], help="set number of copies of a book (admin)"
    )
    sub.add_argument("isbn")
    sub.add_argument("copies", type=int)
    sub.set_defaults(func=_do_copies, needs_user=True)

    # Add values from ini file as default values
    config = configparser.ConfigParser()
    config.read(CONFIG_FILE)
    common_parser.set_defaults(**config.defaults())

    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(format="%(levelname)-7s %(message)s")
        logging.getLogger().setLevel(logging.DEBUG)

    if args.needs_user and args.user is None:
        print(
            "Parameter 'user' is required. "
            f"Either specify as an argument, or in file '{CONFIG_FILE}'"
        )
        sys.exit(-1)

    # call the appropriate subcommand
    try:
        args.func(args)
    except (BookcheckoutError, ValueError) as e:
        print(str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
