# Overview: Service-layer operations for document numbering; encapsulates business logic and database work.

from __future__ import annotations

from datetime import datetime

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from ..errors import ValidationError
from ..extensions import db
from ..models import DeliveryChallan, DocumentSequence, Invoice
from billing.time_utils import business_date_stamp


DOCUMENT_TYPE_INVOICE = "INVOICE"
DOCUMENT_TYPE_CHALLAN = "CHALLAN"

# Where numbers of each document type are stored once issued
_ISSUED_NUMBERS = {
    DOCUMENT_TYPE_INVOICE: (Invoice, Invoice.invoice_number),
    DOCUMENT_TYPE_CHALLAN: (DeliveryChallan, DeliveryChallan.challan_number),
}


def highest_issued_sequence(account_id: int, document_type: str, stem: str) -> int:
    """
    Highest numeric suffix already issued under `stem` (prefix + date) for
    an account, or 0 when none exists.
    """
    model, column = _ISSUED_NUMBERS[document_type]
    rows = (
        db.session.query(column)
        .filter(model.account_id == account_id, column.like(f"{stem}%"))
        .all()
    )
    highest = 0
    for (number,) in rows:
        suffix = number[len(stem):]
        if suffix.isdigit():
            highest = max(highest, int(suffix))
    return highest


def _current_counter(account_id: int, document_type: str, stamp: str) -> int:
    return (
        db.session.query(DocumentSequence.next_number)
        .filter_by(account_id=account_id, document_type=document_type, sequence_date=stamp)
        .scalar()
    )


def next_document_number(
    *,
    account_id: int,
    document_type: str,
    prefix: str,
    pad: int = 4,
    on_date: datetime | None = None,
) -> str:
    """
    Atomically allocate the next {PREFIX}{YYYYMMDD}{NNNN} number.

    The counter row for (account, type, day) is bumped with a single UPDATE,
    so two writers can never read the same value. The first number of a day
    creates the row inside a savepoint, seeded from the highest suffix
    already issued. Runs inside the caller's transaction; nothing is
    committed here.
    """
    if not account_id:
        raise ValidationError("account_id is required")
    if document_type not in _ISSUED_NUMBERS:
        raise ValidationError(f"Unknown document type: {document_type}")

    stamp = business_date_stamp(on_date)
    stem = f"{prefix}{stamp}"

    stmt = (
        update(DocumentSequence)
        .where(
            DocumentSequence.account_id == account_id,
            DocumentSequence.document_type == document_type,
            DocumentSequence.sequence_date == stamp,
        )
        .values(next_number=DocumentSequence.next_number + 1)
    )

    result = db.session.execute(stmt)
    if result.rowcount:
        next_num = _current_counter(account_id, document_type, stamp) - 1
    else:
        start = highest_issued_sequence(account_id, document_type, stem) + 1
        try:
            with db.session.begin_nested():
                db.session.add(DocumentSequence(
                    account_id=account_id,
                    document_type=document_type,
                    sequence_date=stamp,
                    next_number=start + 1,
                ))
            next_num = start
        except IntegrityError:
            # Another writer created the row first
            result = db.session.execute(stmt)
            if not result.rowcount:
                raise
            next_num = _current_counter(account_id, document_type, stamp) - 1

    return f"{stem}{next_num:0{pad}d}"
