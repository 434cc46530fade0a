"""
Lookup script for book resolution.

Resolves a few ISBNs against the live catalogs and prints the
keep/recycle decision for each.
"""

import asyncio
import sys

from shelfkeep.config import get_settings
from shelfkeep.errors import InvalidISBNError
from shelfkeep.evaluation.rules import evaluate
from shelfkeep.identification.models import Found, NotFound
from shelfkeep.identification.resolver import build_resolver
from shelfkeep.logging_setup import setup_logging
from shelfkeep.scanner.isbn import require_isbn


async def main(isbns):
    settings = get_settings()
    setup_logging(settings.log_level)

    print("Initializing resolver...")
    resolver = build_resolver(settings)
    rules = settings.rules()

    print("\n--- Running Lookups ---\n")

    try:
        for raw in isbns:
            print(f"ISBN: '{raw}'")
            try:
                isbn = require_isbn(raw)
            except InvalidISBNError as e:
                print(f"⚠️ {e.message}")
                print("-" * 30)
                continue

            outcome = await resolver.resolve(isbn)
            if isinstance(outcome, Found):
                book = outcome.book
                decision = evaluate(book, rules)
                print(f"✅ Found via {outcome.source}: {book.title} by {book.author} ({book.publication_year})")
                print(f"   Genre: {book.genre} -> {decision.label}")
                for reason in decision.reasons:
                    print(f"   - {reason}")
            elif isinstance(outcome, NotFound):
                print("❌ No book found")
            else:
                print(f"⚠️ Error: {outcome.reason}")
            print("-" * 30)
    finally:
        await resolver.close()


if __name__ == "__main__":
    test_cases = sys.argv[1:] or [
        "978-0-307-47427-8",  # The Road
        "0000000000",         # well-formed, unknown
        "12345",              # rejected before lookup
    ]
    asyncio.run(main(test_cases))
