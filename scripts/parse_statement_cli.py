#!/usr/bin/env python3
"""
CLI script to decode a statement file without touching the database.

Usage:
    python parse_statement_cli.py <filename> [--limit N] [--strict]

Examples:
    python parse_statement_cli.py data/mt940/inbox/statement.sta
    python parse_statement_cli.py data/van/inbox/credits.csv --limit 5
"""
import argparse
import sys
from pathlib import Path

from statement_ingest.services.errors import DecodeError
from statement_ingest.services.mt940_parser import decode_messages, parse_mt940, read_statement_sources
from statement_ingest.services.validation import RecordError, validate_statement, validate_van_record
from statement_ingest.services.van_parser import parse_van_file


def print_statement(name: str, stmt, limit: int):
    result = validate_statement(stmt)
    verdict = "OK" if not isinstance(result, RecordError) else f"{result.code}: {result.message}"
    print(f"\n[{name} #{stmt.index}] :20: {stmt.reference} :25: {stmt.account} :28C: {stmt.sequence}")
    if stmt.opening_balance and stmt.closing_balance:
        print(
            f"    Opening {stmt.opening_balance.signed_amount:>12} {stmt.currency}"
            f"  Closing {stmt.closing_balance.signed_amount:>12} {stmt.currency}"
            f"{'  (interim)' if stmt.is_interim else ''}"
        )
    print(f"    Validation: {verdict}")
    print("-" * 80)
    for txn in stmt.transactions[:limit]:
        print(f"    {txn.value_date} | {txn.signed_amount:>12} | {txn.txn_type_code} | {txn.bank_reference or ''}")
        if txn.narrative:
            print(f"        {txn.narrative.replace(chr(10), ' ')[:70]}")
    if len(stmt.transactions) > limit:
        print(f"    ... and {len(stmt.transactions) - limit} more transactions")


def print_mt940(filepath: Path, limit: int, strict: bool = False):
    for name, text in read_statement_sources(filepath):
        if strict:
            # Stops at the first message that fails to decode
            for stmt in parse_mt940(text):
                print_statement(name, stmt, limit)
            continue

        for decoded in decode_messages(text, name):
            if decoded.error is not None:
                print(f"\n[{name} #{decoded.index}] DECODE ERROR: {decoded.error}")
                continue
            print_statement(name, decoded.statement, limit)


def print_van(filepath: Path, limit: int):
    records = parse_van_file(filepath)
    print(f"Total rows: {len(records)}")
    print("-" * 80)
    for record in records[:limit]:
        error = validate_van_record(record)
        verdict = "OK" if error is None else error.code
        print(
            f"[line {record.line_no}] {record.transaction_date} | {str(record.amount):>12} | "
            f"{record.virtual_account_number} | {record.remitter_name or ''} | {verdict}"
        )
    if len(records) > limit:
        print(f"\n... and {len(records) - limit} more rows")


def main():
    parser = argparse.ArgumentParser(
        description="Decode an MT940 or VAN CSV file and print its contents."
    )
    parser.add_argument("filename", help="Path to the .mt940, .sta, .zip or .csv file")
    parser.add_argument(
        "--limit", "-l",
        type=int,
        default=10,
        help="Maximum number of transactions to display per statement (default: 10)"
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Fail on the first MT940 message that does not decode"
    )

    args = parser.parse_args()

    filepath = Path(args.filename)
    if not filepath.exists():
        print(f"Error: File not found: {filepath}", file=sys.stderr)
        sys.exit(1)

    try:
        if filepath.suffix.lower() == ".csv":
            print_van(filepath, args.limit)
        else:
            print_mt940(filepath, args.limit, args.strict)
    except DecodeError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
