"""
Tests for the stock ledger.
"""

from decimal import Decimal
from unittest import mock

from django.core.exceptions import ValidationError
from django.contrib.auth import get_user_model
from django.db.models.query import QuerySet
from django.test import SimpleTestCase, TestCase, override_settings

from products.models import Product
from ..exceptions import (
    InsufficientStockException, InvalidQuantityException, ProductNotFoundException,
    ServiceUnavailableException, StockConflictException,
)
from ..models import MovementKind, StockMovement
from ..services import StockLedger, StockMovementQuery, retry_on_conflict


class StockLedgerTest(TestCase):
    """Test recording movements through the ledger."""

    def setUp(self):
        self.user = get_user_model().objects.create_user(username="clerk", password="testpass123")
        self.product = Product.objects.create(name="Pão de Queijo", sku="PQ-001", unit_weight=Decimal("0.5"))

    def test_inbound_increases_stock_and_records_snapshot(self):
        movement = StockLedger.record_movement(
            self.product.pk, MovementKind.INBOUND, Decimal("10"), reason="Delivery", user=self.user
        )

        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, Decimal("10"))
        self.assertEqual(movement.direction, 1)
        self.assertEqual(movement.previous_stock, Decimal("0"))
        self.assertEqual(movement.new_stock, Decimal("10"))
        self.assertEqual(movement.user, self.user)
        self.assertEqual(movement.sequence, 1)

    def test_outbound_beyond_stock_is_rejected_and_stock_unchanged(self):
        StockLedger.record_movement(self.product.pk, MovementKind.INBOUND, 5)

        with self.assertRaises(InsufficientStockException) as ctx:
            StockLedger.record_movement(self.product.pk, MovementKind.SALE_DEDUCTION, 8)

        self.assertIn("Pão de Queijo", ctx.exception.message)
        self.assertEqual(Decimal(ctx.exception.details["shortfall"]), Decimal("3"))
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, Decimal("5"))
        self.assertEqual(StockMovement.objects.filter(product=self.product).count(), 1)

    def test_lost_stock_race_leaves_nothing_behind(self):
        StockLedger.record_movement(self.product.pk, MovementKind.INBOUND, 10)

        # Another writer changed the stock between the locked read and the write.
        with mock.patch.object(QuerySet, "update", return_value=0):
            with self.assertRaises(StockConflictException) as ctx:
                StockLedger.record_movement(self.product.pk, MovementKind.OUTBOUND, 4)

        self.assertEqual(Decimal(ctx.exception.details["expected_stock"]), Decimal("10"))
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, Decimal("10"))
        self.assertEqual(StockMovement.objects.filter(product=self.product).count(), 1)
        self.assertEqual(StockLedger.replay(self.product.pk), Decimal("10"))

    def test_zero_and_negative_quantities_are_rejected(self):
        for quantity in (0, -2, "abc"):
            with self.assertRaises(InvalidQuantityException):
                StockLedger.record_movement(self.product.pk, MovementKind.INBOUND, quantity)
        self.assertFalse(StockMovement.objects.exists())

    def test_direction_must_match_fixed_kinds(self):
        with self.assertRaises(InvalidQuantityException):
            StockLedger.record_movement(self.product.pk, MovementKind.INBOUND, 1, direction=-1)
        with self.assertRaises(InvalidQuantityException):
            StockLedger.record_movement(self.product.pk, MovementKind.ADJUSTMENT, 1)

    def test_unknown_product(self):
        with self.assertRaises(ProductNotFoundException):
            StockLedger.record_movement(99999, MovementKind.INBOUND, 1)

    def test_reference_from_model_and_tuple(self):
        movement = StockLedger.record_movement(self.product.pk, MovementKind.INBOUND, 1, reference=self.product)
        self.assertEqual(movement.reference_type, "product")
        self.assertEqual(movement.reference_id, str(self.product.pk))

        movement = StockLedger.record_movement(self.product.pk, MovementKind.INBOUND, 1, reference=("invoice", "NF-77"))
        self.assertEqual((movement.reference_type, movement.reference_id), ("invoice", "NF-77"))

    def test_replay_reproduces_stock(self):
        StockLedger.record_movement(self.product.pk, MovementKind.INBOUND, Decimal("20"))
        StockLedger.record_movement(self.product.pk, MovementKind.SALE_DEDUCTION, Decimal("7.5"))
        StockLedger.record_movement(self.product.pk, MovementKind.PRODUCTION_OUTPUT, Decimal("3"))
        StockLedger.record_movement(self.product.pk, MovementKind.ADJUSTMENT, Decimal("0.25"), direction=-1)
        StockLedger.record_movement(self.product.pk, MovementKind.CANCELLATION_RESTORE, Decimal("7.5"))

        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, Decimal("22.75"))
        self.assertEqual(StockLedger.replay(self.product.pk), self.product.stock)

        movements = list(StockMovement.objects.filter(product=self.product).order_by("sequence"))
        for earlier, later in zip(movements, movements[1:]):
            self.assertEqual(earlier.new_stock, later.previous_stock)
        for movement in movements:
            self.assertEqual(movement.new_stock - movement.previous_stock, movement.signed_quantity)

    def test_set_stock_level_records_adjustment(self):
        StockLedger.record_movement(self.product.pk, MovementKind.INBOUND, 10)

        movement = StockLedger.set_stock_level(self.product.pk, Decimal("7"), user=self.user)
        self.assertEqual(movement.movement_kind, MovementKind.ADJUSTMENT)
        self.assertEqual(movement.direction, -1)
        self.assertEqual(movement.quantity, Decimal("3"))

        self.assertIsNone(StockLedger.set_stock_level(self.product.pk, 7))

        movement = StockLedger.set_stock_level(self.product.pk, 12)
        self.assertEqual(movement.direction, 1)
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, Decimal("12"))

    def test_set_stock_level_rejects_negative_count(self):
        with self.assertRaises(InvalidQuantityException):
            StockLedger.set_stock_level(self.product.pk, -1)

    def test_movements_are_immutable(self):
        movement = StockLedger.record_movement(self.product.pk, MovementKind.INBOUND, 4)

        movement.reason = "rewritten"
        with self.assertRaises(ValidationError):
            movement.save()
        with self.assertRaises(ValidationError):
            movement.delete()
        self.assertEqual(StockMovement.objects.get(pk=movement.pk).reason, "")

    def test_inconsistent_snapshot_is_refused(self):
        with self.assertRaises(ValidationError):
            StockMovement.objects.create(
                product=self.product,
                movement_kind=MovementKind.INBOUND,
                direction=1,
                quantity=Decimal("5"),
                previous_stock=Decimal("0"),
                new_stock=Decimal("4"),
            )


class StockMovementQueryTest(TestCase):
    """Test the audit query and low-stock check."""

    def setUp(self):
        self.flour = Product.objects.create(name="Flour", sku="FL-001", min_stock_level=Decimal("5"))
        self.sugar = Product.objects.create(name="Sugar", sku="SG-001")
        StockLedger.record_movement(self.flour.pk, MovementKind.INBOUND, 10)
        StockLedger.record_movement(self.sugar.pk, MovementKind.INBOUND, 3)
        StockLedger.record_movement(self.flour.pk, MovementKind.SALE_DEDUCTION, 6)

    def test_list_filters_and_ordering(self):
        movements = list(StockMovementQuery.list_movements(product_id=self.flour.pk))
        self.assertEqual(len(movements), 2)
        self.assertEqual(movements[0].movement_kind, MovementKind.SALE_DEDUCTION)

        inbound = StockMovementQuery.list_movements(movement_kind=MovementKind.INBOUND)
        self.assertEqual(inbound.count(), 2)

        self.assertEqual(len(StockMovementQuery.list_movements(limit=1)), 1)

    def test_low_stock(self):
        self.assertTrue(StockMovementQuery.check_low_stock(self.flour.pk))
        self.assertFalse(StockMovementQuery.check_low_stock(self.flour.pk, min_stock_level=2))
        self.assertTrue(StockMovementQuery.check_low_stock(self.sugar.pk))

        with self.assertRaises(ProductNotFoundException):
            StockMovementQuery.check_low_stock(99999)

    def test_consistency_report(self):
        report = StockMovementQuery.consistency_report(self.flour.pk)
        self.assertTrue(report["consistent"])
        self.assertEqual(report["movements_count"], 2)
        self.assertEqual(report["replayed_stock"], Decimal("4"))


@override_settings(STOCK_RETRY_ATTEMPTS=3, STOCK_RETRY_BACKOFF=0)
class RetryOnConflictTest(SimpleTestCase):
    """Test the boundary retry helper."""

    def setUp(self):
        patcher = mock.patch(
            "stock.services.retry.transaction.get_connection",
            return_value=mock.Mock(in_atomic_block=False),
        )
        patcher.start()
        self.addCleanup(patcher.stop)

    @mock.patch("stock.services.retry.time.sleep")
    def test_retries_until_success(self, sleep):
        calls = []

        @retry_on_conflict
        def flaky():
            calls.append(1)
            if len(calls) < 3:
                raise StockConflictException(1, Decimal("10"))
            return "done"

        self.assertEqual(flaky(), "done")
        self.assertEqual(len(calls), 3)
        self.assertEqual(sleep.call_count, 2)

    @mock.patch("stock.services.retry.time.sleep")
    def test_exhausted_retries_raise_service_unavailable(self, sleep):
        @retry_on_conflict
        def always_conflicts():
            raise StockConflictException(1, Decimal("10"))

        with self.assertRaises(ServiceUnavailableException) as ctx:
            always_conflicts()
        self.assertEqual(ctx.exception.details["attempts"], 3)
        self.assertEqual(ctx.exception.http_status, 500)

    def test_business_errors_are_not_retried(self):
        calls = []

        @retry_on_conflict
        def invalid():
            calls.append(1)
            raise InvalidQuantityException(0)

        with self.assertRaises(InvalidQuantityException):
            invalid()
        self.assertEqual(len(calls), 1)

    def test_inner_calls_do_not_retry(self):
        calls = []

        @retry_on_conflict
        def conflicting():
            calls.append(1)
            raise StockConflictException(1, Decimal("10"))

        with mock.patch(
            "stock.services.retry.transaction.get_connection",
            return_value=mock.Mock(in_atomic_block=True),
        ):
            with self.assertRaises(StockConflictException):
                conflicting()
        self.assertEqual(len(calls), 1)
