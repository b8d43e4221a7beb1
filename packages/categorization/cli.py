import argparse
import sys

from packages.ingestion.errors import IngestionError
from packages.ingestion.merchant_keys import MerchantKeyExtractor
from packages.ingestion.models import StatementFile
from packages.ingestion.pipeline import ImportPipeline
from packages.ingestion.registry import build_default_registry
from packages.storage.memory import InMemoryStore
from packages.storage.models import Account

from packages.categorization.engine import CategorizationEngine
from packages.categorization.transfers import TransferMatchingEngine


def _truncate(text: str, width: int) -> str:
    text = text or ""
    return (text[: width - 3] + "..") if len(text) > width - 1 else text


def parse(args):
    registry = build_default_registry()
    print(f"Parsing {args.file} as {args.bank}...")
    try:
        result = registry.parse_with_bank(
            StatementFile.from_path(args.file, password=args.password), args.bank
        )
    except IngestionError as e:
        print(f"Error parsing file: {e}")
        return 1

    meta = result.metadata
    print(f"Found {len(result.transactions)} transactions.")
    print(f"Skipped rows: {result.skipped_rows}  Errors: {result.error_count}")
    if meta.account_number:
        print(f"Account: {meta.account_number}")
    if meta.statement_period:
        print(f"Period: {meta.statement_period}")

    print(f"\n{'DATE':<12} | {'AMOUNT':>12} | {'DESCRIPTION':<60}")
    print("-" * 90)
    for txn in result.transactions[: args.limit]:
        print(f"{txn.date.isoformat():<12} | {txn.amount:>12.2f} | {_truncate(txn.description, 60):<60}")
    if len(result.transactions) > args.limit:
        print(f"\n... (showing first {args.limit}) ...")
    return 0


def keys(args):
    extractor = MerchantKeyExtractor(build_default_registry())
    print(f"\n{'NARRATION':<60} | {'KEY':<20} | HINTS")
    print("-" * 110)
    for narration in args.narrations:
        key = extractor.extract(narration, args.bank)
        hints = extractor.hints(narration, args.bank)
        flags = []
        if hints.transaction_type:
            flags.append(hints.transaction_type)
        if hints.is_self_transfer:
            flags.append("self-transfer")
        elif hints.is_transfer:
            flags.append("transfer")
        if hints.possible_category:
            flags.append(f"category={hints.possible_category}")
        print(f"{_truncate(narration, 60):<60} | {key:<20} | {', '.join(flags)}")
    return 0


def categorize(args):
    registry = build_default_registry()
    store = InMemoryStore()
    transfers = TransferMatchingEngine(store)
    engine = CategorizationEngine(store, registry, transfer_engine=transfers)
    pipeline = ImportPipeline(store, registry, categorizer=engine, transfer_engine=transfers)

    account = store.save_account(Account(name=args.file, bank_name=args.bank))
    try:
        summary = pipeline.run(
            StatementFile.from_path(args.file, password=args.password), account.id, args.bank
        )
    except IngestionError as e:
        print(f"Error importing file: {e}")
        return 1

    print(
        f"Imported {summary.imported} transactions, "
        f"categorized {summary.categorized}, duplicates {summary.duplicates}."
    )
    print(f"\n{'DATE':<12} | {'AMOUNT':>12} | {'CATEGORY':<14} | {'KEY':<20} | DESCRIPTION")
    print("-" * 120)
    for txn in store.transactions_for_import(summary.import_id)[: args.limit]:
        print(
            f"{txn.date.isoformat():<12} | {txn.amount:>12.2f} | "
            f"{txn.category or '-':<14} | {txn.merchant_key or '':<20} | "
            f"{_truncate(txn.description, 50)}"
        )

    print("\n--- Category Summary ---")
    for category, entry in sorted(engine.category_stats(account.id).items()):
        print(f"{category:<14} {int(entry['count']):>5}  {entry['amount']:>14.2f}  {entry['percentage']:5.1f}%")
    return 0


def main(argv=None):
    parser = argparse.ArgumentParser(description="Bank statement ingestion CLI")
    subparsers = parser.add_subparsers(dest="command")

    # Parse
    parse_parser = subparsers.add_parser("parse")
    parse_parser.add_argument("file", type=str, help="Path to the statement file")
    parse_parser.add_argument("--bank", type=str, required=True, help="Bank id, e.g. HDFC or SBI")
    parse_parser.add_argument("--password", type=str, default=None, help="Workbook password")
    parse_parser.add_argument("--limit", type=int, default=50)

    # Keys
    keys_parser = subparsers.add_parser("keys")
    keys_parser.add_argument("narrations", nargs="+", help="Narration strings")
    keys_parser.add_argument("--bank", type=str, default=None)

    # Categorize
    cat_parser = subparsers.add_parser("categorize")
    cat_parser.add_argument("file", type=str)
    cat_parser.add_argument("--bank", type=str, required=True)
    cat_parser.add_argument("--password", type=str, default=None)
    cat_parser.add_argument("--limit", type=int, default=100)

    args = parser.parse_args(argv)

    if args.command == "parse":
        return parse(args)
    elif args.command == "keys":
        return keys(args)
    elif args.command == "categorize":
        return categorize(args)
    else:
        parser.print_help()
        return 0


if __name__ == "__main__":
    sys.exit(main())
