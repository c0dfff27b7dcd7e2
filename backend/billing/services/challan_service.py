# Overview: Service-layer operations for delivery challans; encapsulates business logic and database work.

from __future__ import annotations

from flask import current_app

from ..errors import NotFoundError, UnauthorizedError
from ..extensions import db
from ..models import DeliveryChallan, Invoice
from ..models.invoices import CHALLAN_STATUS_PENDING
from billing.time_utils import utcnow
from .concurrency import run_with_retry
from .document_service import DOCUMENT_TYPE_CHALLAN, next_document_number


def generate_delivery_challan(
    account_id: int,
    invoice_id: int,
    recipient_name: str | None = None,
    recipient_phone: str | None = None,
    notes: str | None = None,
) -> DeliveryChallan:
    """
    Issue a Pending delivery challan for an invoice.

    Recipient fields default to the invoice customer; the address falls back
    from the invoice delivery address to the customer address.
    """
    def _op():
        invoice = db.session.query(Invoice).filter_by(id=invoice_id).first()
        if not invoice or invoice.deleted:
            raise NotFoundError("Invoice not found")
        if invoice.account_id != account_id:
            raise UnauthorizedError("Invoice does not belong to this account")

        customer = invoice.customer
        challan_number = next_document_number(
            account_id=account_id,
            document_type=DOCUMENT_TYPE_CHALLAN,
            prefix=current_app.config["CHALLAN_PREFIX"],
        )

        challan = DeliveryChallan(
            account_id=account_id,
            challan_number=challan_number,
            invoice_id=invoice.id,
            delivery_date=utcnow(),
            delivery_address=invoice.delivery_address or customer.address or "",
            recipient_name=recipient_name or customer.name,
            recipient_phone=recipient_phone or customer.phone or "",
            notes=notes,
            status=CHALLAN_STATUS_PENDING,
        )
        db.session.add(challan)
        db.session.commit()

        current_app.logger.info("Generated challan %s for invoice %s", challan_number, invoice.invoice_number)
        return challan

    return run_with_retry(_op)
