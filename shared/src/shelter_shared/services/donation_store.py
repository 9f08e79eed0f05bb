"""Donation record persistence.

The donations table is keyed by transaction_id. create_if_absent() is the
single write path: a conditional PutItem that succeeds for exactly one of any
number of concurrent writers with the same transaction_id. Its outcome is the
authoritative "this delivery created the record" signal.
"""

from datetime import datetime
from decimal import Decimal

from boto3.dynamodb.conditions import Attr

from shelter_shared.models.donation import DonationRecord, DonationStats
from shelter_shared.models.enums import PaymentStatus
from shelter_shared.services.dynamodb import DynamoDBService
from shelter_shared.utils.logging import get_logger, log_donation_operation

logger = get_logger(__name__)


class DonationStore:
    """Repository for DonationRecord items."""

    DONATIONS_TABLE = "donations"

    def __init__(self, db: DynamoDBService) -> None:
        self._db = db

    def create_if_absent(self, record: DonationRecord) -> tuple[DonationRecord, bool]:
        """Insert the record unless one already exists for its transaction_id.

        Every attribute is insert-only: a losing writer changes nothing.

        Args:
            record: Fully populated record to insert

        Returns:
            Tuple of (stored record, created). When created is False the
            returned record is the one that was already stored.
        """
        created = self._db.put_item(
            self.DONATIONS_TABLE,
            record.to_item(),
            condition_expression="attribute_not_exists(transaction_id)",
        )
        if created:
            log_donation_operation(
                logger,
                "record_donation",
                transaction_id=record.transaction_id,
                donation_id=record.donation_id,
                amount=record.amount,
                currency=record.currency.value,
                status="created",
            )
            return record, True

        existing = self.get(record.transaction_id)
        if existing is None:
            # Condition failed but the item is gone; nothing here deletes donations
            raise RuntimeError(
                f"Donation for {record.transaction_id} vanished after conditional write"
            )

        log_donation_operation(
            logger,
            "record_donation",
            transaction_id=record.transaction_id,
            donation_id=existing.donation_id,
            status="already_exists",
        )
        return existing, False

    def get(self, transaction_id: str) -> DonationRecord | None:
        """Get the donation for a Stripe transaction.

        Args:
            transaction_id: PaymentIntent ID

        Returns:
            DonationRecord or None if not recorded
        """
        item = self._db.get_item(
            self.DONATIONS_TABLE,
            {"transaction_id": transaction_id},
            consistent_read=True,
        )
        if not item:
            return None
        return DonationRecord.from_item(item)

    def stats(self, now: datetime) -> DonationStats:
        """Aggregate completed donations overall and for the current month.

        Args:
            now: Reference time; the month window starts on day 1 of now's month

        Returns:
            DonationStats totals
        """
        items = self._db.scan(
            self.DONATIONS_TABLE,
            filter_expression=Attr("payment_status").eq(PaymentStatus.COMPLETED.value),
        )
        month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)

        stats = DonationStats()
        for item in items:
            amount = Decimal(str(item.get("amount", 0)))
            stats.total_raised += amount
            stats.donation_count += 1
            created_at = datetime.fromisoformat(item["created_at"])
            if created_at >= month_start:
                stats.monthly_total += amount
                stats.monthly_count += 1
        return stats
