"""Donation receipt email templates.

Both renderers take the same keyword arguments so the handler can build the
HTML and plain-text parts of one message from a single dict.
"""

from datetime import datetime
from decimal import Decimal
from html import escape

RECEIPT_SUBJECT = "Thank You for Your Compassion - HALT Shelter"

ORGANIZATION_NAME = "HALT Shelter"
ORGANIZATION_EIN = "41-2531054"
ORGANIZATION_SITE = "haltshelter.org"
ORGANIZATION_CONTACT = "contact@haltshelter.org"

CURRENCY_SYMBOLS = {
    "USD": "$",
    "CAD": "$",
    "EUR": "€",
    "GBP": "£",
}

DONATION_TYPE_WORDING = {
    "one-time": "one-time",
    "monthly": "monthly",
    "quarterly": "quarterly",
    "annual": "annual",
}

IMPACT_ITEMS = [
    "Emergency veterinary care and life-saving surgeries",
    "Daily food, shelter, and compassionate rehabilitation",
    "Finding loving forever homes for rescued animals",
    "Critical medications and ongoing medical treatments",
]

EMERGENCY_NOTE = (
    "Your emergency contribution will be used immediately for critical cases "
    "requiring urgent medical attention. Thank you for responding so quickly "
    "to help animals in crisis!"
)

MONTHLY_NOTE = (
    "As a monthly supporter, you're providing consistent care that animals can "
    "count on. Your recurring gift means we can plan ahead and help even more "
    "animals find their forever homes."
)


def format_amount(amount: Decimal, currency: str) -> str:
    """Format an amount with its currency symbol, e.g. "$25.00"."""
    code = currency.upper()
    symbol = CURRENCY_SYMBOLS.get(code)
    if symbol is None:
        return f"{amount:,.2f} {code}"
    return f"{symbol}{amount:,.2f}"


def _donation_type_text(donation_type: str) -> str:
    return DONATION_TYPE_WORDING.get(donation_type, "one-time")


def _impact_heading(donation_type: str) -> str:
    if donation_type == "monthly":
        return "Your monthly support helps provide:"
    return "Every dollar you contribute goes directly to:"


def _wrap_html(content: str) -> str:
    """Wrap receipt content in the branded header and footer."""
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{ORGANIZATION_NAME}</title>
</head>
<body style="margin: 0; padding: 0; font-family: Arial, sans-serif; background-color: #f3f4f6;">
  <div style="max-width: 600px; margin: 0 auto; background-color: #ffffff;">
    <div style="background-color: #dc2626; padding: 24px; text-align: center;">
      <h1 style="color: #ffffff; margin: 0; font-size: 28px;">{ORGANIZATION_NAME}</h1>
      <p style="color: #fecaca; margin: 8px 0 0 0; font-size: 14px;">Help Animals Live &amp; Thrive</p>
    </div>
    <div style="padding: 32px 24px; background-color: #f9fafb;">
      {content}
    </div>
    <div style="background-color: #111827; color: #9ca3af; padding: 24px; text-align: center; font-size: 12px;">
      <p style="margin: 0 0 8px 0;"><strong style="color: #ffffff;">{ORGANIZATION_NAME}</strong></p>
      <p style="margin: 0 0 8px 0;">EIN: {ORGANIZATION_EIN} | Tax-deductible donations</p>
      <p style="margin: 0;">
        <a href="https://{ORGANIZATION_SITE}" style="color: #dc2626;">{ORGANIZATION_SITE}</a>
        &nbsp;|&nbsp;
        <a href="mailto:{ORGANIZATION_CONTACT}" style="color: #dc2626;">{ORGANIZATION_CONTACT}</a>
      </p>
    </div>
  </div>
</body>
</html>"""


def donation_receipt_html(
    *,
    donor_name: str,
    amount: Decimal,
    currency: str,
    donation_type: str,
    is_emergency: bool,
    donation_date: datetime,
    receipt_number: str | None = None,
) -> str:
    """Render the HTML receipt.

    Every interpolated value is HTML-escaped.

    Args:
        donor_name: Name used in the greeting
        amount: Amount in major currency units
        currency: ISO currency code
        donation_type: one-time, monthly, quarterly or annual
        is_emergency: Adds the emergency fund paragraph
        donation_date: Date shown on the receipt
        receipt_number: Optional receipt number shown under the date

    Returns:
        Complete HTML document
    """
    type_text = escape(_donation_type_text(donation_type))
    amount_text = escape(format_amount(amount, currency))
    date_text = escape(donation_date.strftime("%B %d, %Y"))

    sections = [
        '<h2 style="color: #111827; margin: 0 0 16px 0; font-size: 24px;">'
        "Thank You for Making a Difference!</h2>",
        '<p style="color: #374151; font-size: 16px; line-height: 1.6;">'
        f"Dear <strong>{escape(donor_name)}</strong>,</p>",
        '<p style="color: #374151; font-size: 16px; line-height: 1.6;">'
        f"Your generous {type_text} gift of "
        f'<strong style="color: #059669;">{amount_text}</strong> '
        "has been received and is already making an impact! Every contribution "
        "helps us continue our mission to rescue, rehabilitate, and rehome "
        "animals in need.</p>",
    ]

    if donation_type == "monthly":
        sections.append(
            '<div style="background-color: #eff6ff; border: 1px solid #bfdbfe; '
            'border-radius: 8px; padding: 20px; margin: 0 0 24px 0;">'
            '<h3 style="color: #1e40af; margin: 0 0 12px 0;">You\'re a Monthly Hero!</h3>'
            f'<p style="color: #1e40af; margin: 0;">{escape(MONTHLY_NOTE)}</p></div>'
        )

    if is_emergency:
        sections.append(
            '<div style="background-color: #fef2f2; border: 1px solid #fecaca; '
            'border-radius: 8px; padding: 20px; margin: 0 0 24px 0;">'
            '<h3 style="color: #991b1b; margin: 0 0 12px 0;">Emergency Response</h3>'
            f'<p style="color: #991b1b; margin: 0;">{escape(EMERGENCY_NOTE)}</p></div>'
        )

    items = "".join(f"<li>{escape(item)}</li>" for item in IMPACT_ITEMS)
    sections.append(
        '<div style="background-color: #ffffff; border-radius: 8px; padding: 24px; '
        'margin: 0 0 24px 0; border-left: 4px solid #dc2626;">'
        '<h3 style="color: #111827; margin: 0 0 16px 0;">Your Impact</h3>'
        f'<p style="color: #374151;">{escape(_impact_heading(donation_type))}</p>'
        f'<ul style="color: #4b5563; line-height: 1.8;">{items}</ul></div>'
    )

    details = f"Donation date: {date_text}"
    if receipt_number:
        details += f"<br/>Receipt number: {escape(receipt_number)}"
    sections.append(f'<p style="color: #6b7280; font-size: 13px;">{details}</p>')

    sections.append(
        '<p style="color: #374151; font-size: 15px; line-height: 1.6; margin: 0;">'
        "With heartfelt gratitude,<br/><strong>The HALT Team</strong><br/>"
        f'<span style="color: #6b7280; font-size: 13px;">{ORGANIZATION_SITE}</span></p>'
    )

    return _wrap_html("\n      ".join(sections))


def donation_receipt_text(
    *,
    donor_name: str,
    amount: Decimal,
    currency: str,
    donation_type: str,
    is_emergency: bool,
    donation_date: datetime,
    receipt_number: str | None = None,
) -> str:
    """Render the plain-text receipt. Arguments match donation_receipt_html()."""
    lines = [
        "HALT SHELTER - Thank You for Making a Difference!",
        "",
        f"Dear {donor_name},",
        "",
        f"Your generous {_donation_type_text(donation_type)} gift of "
        f"{format_amount(amount, currency)} has been received and is already "
        "making an impact! Every contribution helps us continue our mission to "
        "rescue, rehabilitate, and rehome animals in need.",
    ]

    if donation_type == "monthly":
        lines += ["", "YOU'RE A MONTHLY HERO!", MONTHLY_NOTE]
    if is_emergency:
        lines += ["", "EMERGENCY RESPONSE", EMERGENCY_NOTE]

    lines += ["", "YOUR IMPACT", "===========", _impact_heading(donation_type)]
    lines += [f"- {item}" for item in IMPACT_ITEMS]

    lines += ["", f"Donation date: {donation_date.strftime('%B %d, %Y')}"]
    if receipt_number:
        lines.append(f"Receipt number: {receipt_number}")

    lines += [
        "",
        "With heartfelt gratitude,",
        "The HALT Team",
        "",
        f"{ORGANIZATION_NAME} | EIN: {ORGANIZATION_EIN} | Tax-deductible donations",
        f"{ORGANIZATION_SITE} | {ORGANIZATION_CONTACT}",
    ]
    return "\n".join(lines)
