"""Tests for service duration resolution."""
import pytest
from sqlalchemy.orm import Session

from booking_api.services import duration_service, order_service


def _total(db: Session, order) -> int:
    loaded = order_service.get_order(db, order.id)
    return duration_service.resolve_total_minutes(loaded.items)


class TestResolveDuration:
    def test_variant_wins_over_product(self, db: Session, make_order):
        order = make_order((45, 30))
        assert _total(db, order) == 45

    def test_falls_back_to_product(self, db: Session, make_order):
        order = make_order((None, 30))
        assert _total(db, order) == 30

    def test_items_are_summed(self, db: Session, make_order):
        order = make_order((30, None), (None, 15), (20, 60))
        assert _total(db, order) == 65

    def test_missing_everywhere_counts_zero(self, db: Session, make_order):
        order = make_order((None, None))
        assert _total(db, order) == 0

    @pytest.mark.parametrize("variant_value", [0, -10, "abc", True])
    def test_unusable_variant_value_uses_product(self, db: Session, make_order, variant_value):
        order = make_order((variant_value, 25))
        assert _total(db, order) == 25

    def test_numeric_strings_accepted(self, db: Session, make_order):
        order = make_order(("40", None))
        assert _total(db, order) == 40

    def test_item_without_variant(self, db: Session, make_order):
        from booking_api.db.models import LineItem

        order = make_order()
        db.add(LineItem(order_id=order.id, variant_id=None, title="Gift card"))
        db.commit()
        assert _total(db, order) == 0

    @pytest.mark.parametrize("variant_value", ["inf", "-inf", "nan"])
    def test_non_finite_variant_value_uses_product(self, db: Session, make_order, variant_value):
        order = make_order((variant_value, 25))
        assert _total(db, order) == 25

    def test_fractional_minutes_round_up(self, db: Session, make_order):
        order = make_order(("29.9", None), (10.25, None))
        assert _total(db, order) == 41
