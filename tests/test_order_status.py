"""Tests for the order status state machine and its inventory effects."""

import pytest

from conftest import add_order, add_product, stock_of
from orderflow.database import UnitOfWork
from orderflow.exceptions import InsufficientStock, InvalidTransition
from orderflow.models.order import Order, OrderStatus
from orderflow.services.order_status import allowed_transitions, can_transition, transition_order

S = OrderStatus


def move(db, order_id, status, **kwargs):
    with UnitOfWork(db):
        order = db.get(Order, order_id)
        entry = transition_order(db, order, status, **kwargs)
    return entry


def reload(db, order_id):
    db.expire_all()
    return db.get(Order, order_id)


class TestGraph:
    @pytest.mark.parametrize("from_status,to_status", [
        (S.PENDING, S.CONFIRMED),
        (S.PENDING, S.CANCELLED),
        (S.CONFIRMED, S.PROCESSING),
        (S.PROCESSING, S.SHIPPED),
        (S.SHIPPED, S.OUT_FOR_DELIVERY),
        (S.SHIPPED, S.DELIVERED),
        (S.OUT_FOR_DELIVERY, S.RETURNED),
        (S.DELIVERED, S.RETURNED),
        (S.RETURNED, S.REFUNDED),
    ])
    def test_allowed_edges(self, from_status, to_status):
        assert can_transition(from_status, to_status)

    @pytest.mark.parametrize("from_status,to_status", [
        (S.DELIVERED, S.PROCESSING),
        (S.PENDING, S.SHIPPED),
        (S.SHIPPED, S.CANCELLED),
        (S.CANCELLED, S.CONFIRMED),
        (S.REFUNDED, S.PENDING),
        (S.CONFIRMED, S.CONFIRMED),
    ])
    def test_forbidden_edges(self, from_status, to_status):
        assert not can_transition(from_status, to_status)

    def test_terminal_states(self):
        assert allowed_transitions(S.CANCELLED) == []
        assert allowed_transitions(S.REFUNDED) == []

    def test_allowed_transitions_in_declaration_order(self):
        assert allowed_transitions(S.OUT_FOR_DELIVERY) == [S.DELIVERED, S.RETURNED]


class TestTransitions:
    def test_invalid_transition_leaves_order_unchanged(self, db):
        product = add_product(db, stock=5, reserved=2)
        order = add_order(db, [(product, 2)], status=S.DELIVERED)

        with pytest.raises(InvalidTransition) as exc_info:
            move(db, order.id, S.PROCESSING)

        error = exc_info.value
        assert error.details["fromStatus"] == "DELIVERED"
        assert error.details["toStatus"] == "PROCESSING"
        assert error.details["validTransitions"] == ["RETURNED"]

        order = reload(db, order.id)
        assert order.status == S.DELIVERED
        assert len(order.tracking) == 1
        assert stock_of(db, product.id) == (5, 2)

    def test_transition_appends_tracking_entry(self, db):
        product = add_product(db, stock=5)
        order = add_order(db, [(product, 1)], status=S.PROCESSING, inventory_reserved=True)

        move(db, order.id, S.SHIPPED, tracking_number="BLR123", location="In Transit", message="Handed to courier")

        order = reload(db, order.id)
        assert order.status == S.SHIPPED
        assert order.tracking_number == "BLR123"
        latest = order.tracking[-1]
        assert latest.status == S.SHIPPED
        assert latest.message == "Handed to courier"
        assert latest.tracking_number == "BLR123"
        assert latest.location == "In Transit"

    def test_default_tracking_message(self, db):
        product = add_product(db, stock=5)
        order = add_order(db, [(product, 1)], status=S.CONFIRMED, inventory_reserved=True)

        entry = move(db, order.id, S.PROCESSING)
        assert entry.message == "Order status updated to PROCESSING"


class TestInventoryEffects:
    def test_confirm_cancel_then_reserve_full_stock(self, db):
        product = add_product(db, stock=5)
        first = add_order(db, [(product, 2)])

        move(db, first.id, S.CONFIRMED)
        assert stock_of(db, product.id) == (5, 2)
        assert reload(db, first.id).inventory_reserved is True

        move(db, first.id, S.CANCELLED)
        assert stock_of(db, product.id) == (5, 0)
        assert reload(db, first.id).inventory_reserved is False

        second = add_order(db, [(product, 5)])
        move(db, second.id, S.CONFIRMED)
        assert stock_of(db, product.id) == (5, 5)

    def test_confirm_fails_atomically_when_any_item_short(self, db):
        plenty = add_product(db, name="Thermostat", stock=10)
        scarce = add_product(db, name="Inverter AC", stock=1)
        order = add_order(db, [(plenty, 2), (scarce, 3)])

        with pytest.raises(InsufficientStock) as exc_info:
            move(db, order.id, S.CONFIRMED)

        assert exc_info.value.details["productId"] == scarce.id
        assert exc_info.value.details["available"] == 1
        assert exc_info.value.details["requested"] == 3

        order = reload(db, order.id)
        assert order.status == S.PENDING
        assert order.inventory_reserved is False
        assert len(order.tracking) == 1
        assert stock_of(db, plenty.id) == (10, 0)
        assert stock_of(db, scarce.id) == (1, 0)

    def test_cancel_pending_order_releases_nothing(self, db):
        product = add_product(db, stock=5, reserved=3)
        order = add_order(db, [(product, 2)])

        move(db, order.id, S.CANCELLED)
        assert stock_of(db, product.id) == (5, 3)

    def test_full_delivery_commits_stock(self, db):
        product = add_product(db, stock=5)
        order = add_order(db, [(product, 2)])

        for status in (S.CONFIRMED, S.PROCESSING, S.SHIPPED, S.OUT_FOR_DELIVERY):
            move(db, order.id, status)
        assert stock_of(db, product.id) == (5, 2)

        move(db, order.id, S.DELIVERED)
        assert stock_of(db, product.id) == (3, 0)
        assert reload(db, order.id).inventory_reserved is False

    def test_return_after_delivery_does_not_release_again(self, db):
        product = add_product(db, stock=5, reserved=1)
        order = add_order(db, [(product, 2)], status=S.DELIVERED)

        move(db, order.id, S.RETURNED)
        move(db, order.id, S.REFUNDED)
        assert stock_of(db, product.id) == (5, 1)

    def test_return_from_out_for_delivery_releases_reservation(self, db):
        product = add_product(db, stock=5, reserved=2)
        order = add_order(db, [(product, 2)], status=S.OUT_FOR_DELIVERY, inventory_reserved=True)

        move(db, order.id, S.RETURNED)
        assert stock_of(db, product.id) == (5, 0)
