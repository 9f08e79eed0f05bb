"""Unit tests for the donation receipt templates."""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

import pytest

from shelter_shared.services.email_templates import (
    RECEIPT_SUBJECT,
    donation_receipt_html,
    donation_receipt_text,
    format_amount,
)


def _receipt_args(**overrides: Any) -> dict[str, Any]:
    args: dict[str, Any] = {
        "donor_name": "Jane Doe",
        "amount": Decimal("25.00"),
        "currency": "USD",
        "donation_type": "one-time",
        "is_emergency": False,
        "donation_date": datetime(2026, 3, 14, 12, 0, tzinfo=timezone.utc),
        "receipt_number": "HALT-202603-123456",
    }
    args.update(overrides)
    return args


class TestFormatAmount:
    """Currency formatting."""

    @pytest.mark.parametrize(
        ("currency", "expected"),
        [("USD", "$25.00"), ("cad", "$25.00"), ("EUR", "€25.00"), ("GBP", "£25.00")],
    )
    def test_known_currencies_use_symbol(self, currency: str, expected: str) -> None:
        assert format_amount(Decimal("25"), currency) == expected

    def test_thousands_separator(self) -> None:
        assert format_amount(Decimal("1234.5"), "USD") == "$1,234.50"


class TestDonationReceiptHtml:
    """HTML receipt rendering."""

    def test_subject(self) -> None:
        assert RECEIPT_SUBJECT == "Thank You for Your Compassion - HALT Shelter"

    def test_contains_donor_amount_and_footer(self) -> None:
        html = donation_receipt_html(**_receipt_args())

        assert "Jane Doe" in html
        assert "$25.00" in html
        assert "one-time gift" in html
        assert "EIN: 41-2531054" in html
        assert "March 14, 2026" in html
        assert "HALT-202603-123456" in html

    def test_escapes_donor_name(self) -> None:
        html = donation_receipt_html(**_receipt_args(donor_name="<script>alert(1)</script>"))

        assert "<script>" not in html
        assert "&lt;script&gt;" in html

    def test_emergency_paragraph_only_when_emergency(self) -> None:
        assert "Emergency Response" not in donation_receipt_html(**_receipt_args())
        assert "Emergency Response" in donation_receipt_html(**_receipt_args(is_emergency=True))

    def test_monthly_wording(self) -> None:
        html = donation_receipt_html(**_receipt_args(donation_type="monthly"))

        assert "monthly gift" in html
        assert "Monthly Hero" in html
        assert "Your monthly support helps provide:" in html

    def test_unknown_type_reads_as_one_time(self) -> None:
        html = donation_receipt_html(**_receipt_args(donation_type="weekly"))

        assert "one-time gift" in html


class TestDonationReceiptText:
    """Plain-text receipt rendering."""

    def test_contains_same_facts_as_html(self) -> None:
        text = donation_receipt_text(**_receipt_args(is_emergency=True))

        assert text.startswith("HALT SHELTER - Thank You for Making a Difference!")
        assert "Dear Jane Doe," in text
        assert "one-time gift of $25.00" in text
        assert "EMERGENCY RESPONSE" in text
        assert "Receipt number: HALT-202603-123456" in text
        assert "EIN: 41-2531054" in text

    def test_no_html_tags(self) -> None:
        text = donation_receipt_text(**_receipt_args(donation_type="annual"))

        assert "<" not in text
        assert "annual gift" in text
