"""
CSV Transaction Format

    Date,Description,Category,Amount
    01/07/2024,Tesco,Food,£12.40

Dates are dd/mm/yyyy, amounts carry a "£" prefix on export. Parsing is
forgiving about the amount column: everything from the fourth column
onward is joined back together, so an unquoted "£1,234.50" still reads
as 1234.50.
"""

import csv
import io
import re

from homebudget.models.budget import Transaction


CSV_HEADER = ["Date", "Description", "Category", "Amount"]

_AMOUNT_JUNK = re.compile(r"[^0-9.\-]")


class CsvFormatError(ValueError):
    """The CSV content does not have the Date,Description,Category,Amount layout."""
    pass


def normalize_csv_date(raw: str) -> str:
    """dd/mm/yyyy (or dd-mm-yyyy) -> yyyy-mm-dd; anything else -> ""."""
    parts = [part for part in re.split(r"[/\-]", raw.strip()) if part]
    if len(parts) == 3 and len(parts[2]) == 4:
        day, month, year = parts
        return f"{year}-{month}-{day}"
    return ""


def clean_amount(raw: str) -> float:
    """Strip currency symbols and separators; unparsable amounts are 0."""
    cleaned = _AMOUNT_JUNK.sub("", raw)
    try:
        return float(cleaned)
    except ValueError:
        return 0.0


def parse_transactions_csv(text: str) -> list[Transaction]:
    """
    Parse CSV content into transactions with fresh ids.

    The records are not normalized; callers pass them through the ledger
    normalizer before appending them to a month.

    Raises:
        CsvFormatError: If the header or a row lacks the four columns
    """
    lines = [line.strip() for line in text.splitlines()]
    lines = [line for line in lines if line]
    if not lines:
        return []

    rows = [
        [column.strip() for column in row]
        for row in csv.reader(lines, skipinitialspace=False)
    ]
    header = [column.lower() for column in rows[0]]
    if len(header) < 4 or header[:4] != [name.lower() for name in CSV_HEADER]:
        raise CsvFormatError(
            "The CSV file must include Date, Description, Category and Amount columns."
        )

    transactions = []
    for row in rows[1:]:
        if len(row) < 4:
            raise CsvFormatError(
                "The CSV file must include Date, Description, Category and Amount columns."
            )
        transactions.append(Transaction(
            date=normalize_csv_date(row[0]),
            desc=row[1],
            category=row[2],
            amount=clean_amount(",".join(row[3:])),
        ))
    return transactions


def _format_csv_date(value: str) -> str:
    parts = value.split("-")
    if len(parts) != 3:
        return ""
    year, month, day = parts
    return f"{day}/{month}/{year}"


def _format_amount(amount: float) -> str:
    if amount == 0:
        amount = 0.0
    return f"£{amount:.2f}"


def render_transactions_csv(transactions: list[Transaction]) -> str:
    """Render transactions in the CSV layout, header first."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for tx in transactions:
        writer.writerow([
            _format_csv_date(tx.date),
            tx.desc,
            tx.category,
            _format_amount(tx.amount),
        ])
    return buffer.getvalue().rstrip("\n")
