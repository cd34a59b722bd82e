# ruff: noqa: INP001  # this file is not part of package
import logging
import pprint
from dataclasses import asdict

from bookcheckout import Actor, Library, Role

logging.basicConfig(format="%(levelname)-7s %(message)s")
logging.getLogger().setLevel(logging.DEBUG)
pp = pprint.PrettyPrinter()

# Change the following values to match your situation
db_path = "classroom.db"
student = Actor(12, Role.STUDENT, "emma")
admin = Actor(1, Role.ADMIN, "admin")

lib = Library(db_path)

print("\nSearching books...")
for title, available in lib.search("roald dahl"):
    print(f"{title.isbn:<15} {available} available  {title.title}")

print("\nChecking out a book...")
loan = lib.checkout(student, "9780142410370")
pp.pprint(asdict(loan))

print("\nMy books:")
for loan in lib.my_loans(student):
    print(f"{loan.title} - {loan.status_text()}")

print("\nRecommendations:")
recs = lib.get_recommendations(student)
print(f"({recs.mode})")
pp.pprint([t.title for t in recs.titles])

print("\nReturning the book...")
lib.return_loan(student, loan.id)

print("\nAll loans (admin):")
pp.pprint([asdict(loan) for loan in lib.all_loans(admin)])

lib.close()
