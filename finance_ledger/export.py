"""
Transaction Export

Renders a wallet's ledger as CSV for download.
Columns: Date, Type, Category, Amount, Description.
"""

import csv
import io
from typing import Iterable

from finance_ledger.models.ledger import Transaction


CSV_HEADER = ["Date", "Type", "Category", "Amount", "Description"]


def transactions_to_csv(transactions: Iterable[Transaction]) -> str:
    """One row per transaction, in the order given."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for t in transactions:
        writer.writerow([
            t.timestamp.isoformat(),
            t.kind.value,
            t.category.name,
            f"{t.amount:.2f}",
            t.description,
        ])
    return buffer.getvalue()
