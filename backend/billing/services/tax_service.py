# Overview: GST split and TDS/TCS deductions; pure functions over Decimal amounts.

"""
Tax Calculation

- Same-state supply: CGST and SGST, each at half the GST rate.
- Inter-state supply: IGST at the full GST rate.
- Exactly one of (CGST + SGST) or IGST is non-zero for a taxable line.
- TDS and TCS are flat percentages applied once per invoice, off the subtotal.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from ..money import ZERO, percent_of, to_decimal


DEFAULT_TDS_RATE = Decimal("2")
DEFAULT_TCS_RATE = Decimal("1")


@dataclass(frozen=True)
class TaxBreakdown:
    cgst: Decimal
    sgst: Decimal
    igst: Decimal

    @property
    def total_tax(self) -> Decimal:
        return self.cgst + self.sgst + self.igst

    def to_dict(self) -> dict:
        return {
            "cgst": float(self.cgst),
            "sgst": float(self.sgst),
            "igst": float(self.igst),
            "totalTax": float(self.total_tax),
        }


def compute_tax(taxable_amount, gst_rate, is_same_state: bool = True) -> TaxBreakdown:
    """Split GST on a taxable amount into CGST/SGST or IGST."""
    if is_same_state:
        half_rate = to_decimal(gst_rate) / 2
        cgst = percent_of(taxable_amount, half_rate)
        sgst = percent_of(taxable_amount, half_rate)
        return TaxBreakdown(cgst=cgst, sgst=sgst, igst=ZERO)

    igst = percent_of(taxable_amount, gst_rate)
    return TaxBreakdown(cgst=ZERO, sgst=ZERO, igst=igst)


def compute_tds(amount, applicable: bool, rate=DEFAULT_TDS_RATE) -> Decimal:
    """Tax Deducted at Source, withheld by the payer."""
    if not applicable:
        return ZERO
    return percent_of(amount, rate)


def compute_tcs(amount, applicable: bool, rate=DEFAULT_TCS_RATE) -> Decimal:
    """Tax Collected at Source by the seller."""
    if not applicable:
        return ZERO
    return percent_of(amount, rate)
