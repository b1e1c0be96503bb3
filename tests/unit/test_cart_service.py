"""
Unit tests for the register draft (cart) operations.
"""

import pytest
from decimal import Decimal

from despos.exceptions import (
    AlreadyExpiredStockError, LineNotFoundError, NoPriceLevelError, ValidationError
)
from despos.models import SalesStatus
from despos.services import cart_service
from despos.services.cart_service import SelectionDraft


def _product(product_id, price='10.00', item_quantity=5, item_name=None):
    return {
        'id': product_id,
        'item_name': item_name or f'Product {product_id}',
        'item_quantity': item_quantity,
        'price_levels': [
            {'item_price_level': {'id': product_id}, 'price_level': {'level_name': 'Level 1', 'price': price}},
        ],
    }


@pytest.fixture
def draft():
    return cart_service.reset_draft()


class TestResetDraft:

    def test_defaults(self, draft):
        assert draft.id is None
        assert draft.status == SalesStatus.IN_PROGRESS
        assert draft.selections == {}
        assert draft.line_count == 0
        assert draft.sub_total == Decimal('0')
        assert draft.invoice_no.isdigit()

    def test_new_invoice_number_each_time(self):
        numbers = {cart_service.reset_draft().invoice_no for _ in range(20)}
        assert len(numbers) > 1


class TestAddLine:

    def test_adds_line_with_base_price(self, draft):
        result = cart_service.add_line(draft, _product(7, '12.50'))

        line = result.selections[7]
        assert line.quantity == 1
        assert line.unit_price == Decimal('12.50')
        assert line.unit_cost == Decimal('12.50')
        assert line.item_index == 0
        assert result.line_count == 1

    def test_does_not_mutate_input(self, draft):
        cart_service.add_line(draft, _product(7))
        assert draft.selections == {}
        assert draft.line_count == 0

    def test_duplicate_line_rejected(self, draft):
        draft = cart_service.add_line(draft, _product(7))
        with pytest.raises(ValidationError):
            cart_service.add_line(draft, _product(7))

    def test_out_of_stock_rejected(self, draft):
        with pytest.raises(AlreadyExpiredStockError) as exc:
            cart_service.add_line(draft, _product(7, item_quantity=0))
        assert exc.value.status_code == 409

    def test_product_without_price_level_rejected(self, draft):
        product = _product(7)
        product['price_levels'] = []
        with pytest.raises(NoPriceLevelError):
            cart_service.add_line(draft, product)

    def test_paid_draft_not_editable(self, draft):
        draft = cart_service.add_line(draft, _product(1))
        draft = cart_service.transition(draft, SalesStatus.PAID)
        with pytest.raises(ValidationError):
            cart_service.add_line(draft, _product(2))


class TestRemoveLine:

    def test_add_then_remove_restores_line_count(self, draft):
        draft = cart_service.add_line(draft, _product(1))
        draft = cart_service.add_line(draft, _product(2))
        draft = cart_service.remove_line(draft, 2)

        assert draft.line_count == 1
        assert list(draft.selections) == [1]
        # Never persisted, nothing to stage
        assert draft.to_delete == []

    def test_item_index_not_reused_after_removal(self, draft):
        draft = cart_service.add_line(draft, _product(1))
        draft = cart_service.add_line(draft, _product(2))
        draft = cart_service.remove_line(draft, 1)
        draft = cart_service.add_line(draft, _product(3))

        indexes = [s.item_index for s in draft.sorted_selections()]
        assert indexes == [1, 2]
        assert len(set(indexes)) == len(indexes)

    def test_persisted_line_is_staged_for_deletion(self, draft):
        draft.selections[4] = SelectionDraft(item_index=0, product={}, item_id=4, id=99, sales_id=5)
        draft.line_count = 1

        result = cart_service.remove_line(draft, 4)

        assert [s.id for s in result.to_delete] == [99]
        assert result.selections == {}

    def test_missing_line_raises(self, draft):
        with pytest.raises(LineNotFoundError) as exc:
            cart_service.remove_line(draft, 42)
        assert exc.value.status_code == 404


class TestSetQuantity:

    def test_sets_quantity_without_mutating_input(self, draft):
        draft = cart_service.add_line(draft, _product(1))

        result = cart_service.set_quantity(draft, 1, 4)

        assert result.selections[1].quantity == 4
        assert draft.selections[1].quantity == 1

    @pytest.mark.parametrize('quantity', [0, -2])
    def test_quantity_below_one_rejected(self, draft, quantity):
        draft = cart_service.add_line(draft, _product(1))
        with pytest.raises(ValidationError):
            cart_service.set_quantity(draft, 1, quantity)

    def test_missing_line_raises(self, draft):
        with pytest.raises(LineNotFoundError):
            cart_service.set_quantity(draft, 42, 2)

    def test_paid_draft_not_editable(self, draft):
        draft = cart_service.transition(cart_service.add_line(draft, _product(1)), SalesStatus.PAID)
        with pytest.raises(ValidationError):
            cart_service.set_quantity(draft, 1, 2)


class TestRecompute:

    def test_totals_match_lines(self, draft):
        draft = cart_service.add_line(draft, _product(1, '10.00'))
        draft = cart_service.add_line(draft, _product(2, '2.50'))
        draft = cart_service.recompute(draft, 3)

        assert draft.customer_id == 3
        assert draft.sub_total == Decimal('12.50')
        assert draft.total_due == draft.sub_total + draft.tax_amount - draft.discount_amount

    def test_subtotal_scales_with_quantity(self, draft):
        draft = cart_service.add_line(draft, _product(1, '4.00'))
        draft = cart_service.set_quantity(draft, 1, 3)

        draft = cart_service.recompute(draft, None)

        assert draft.sub_total == Decimal('12.00')
        assert draft.total_due == Decimal('12.00')

    def test_empty_draft_totals_zero(self, draft):
        draft = cart_service.recompute(draft, None)
        assert draft.sub_total == 0
        assert draft.total_due == 0


class TestPaymentAndValidity:

    def test_change_due(self, draft):
        draft = cart_service.recompute(cart_service.add_line(draft, _product(1, '7.00')), 1)
        draft = cart_service.apply_payment(draft, 'cash', Decimal('10.00'))

        assert draft.payment_method == 'cash'
        assert draft.change_due == Decimal('3.00')

    def test_underpayment_has_no_change(self, draft):
        draft = cart_service.recompute(cart_service.add_line(draft, _product(1, '7.00')), 1)
        draft = cart_service.apply_payment(draft, 'cash', Decimal('5.00'))
        assert draft.change_due == Decimal('0')

    def test_negative_payment_rejected(self, draft):
        with pytest.raises(ValidationError):
            cart_service.apply_payment(draft, 'cash', Decimal('-1'))

    def test_invalid_without_selections(self, draft):
        draft = cart_service.apply_payment(draft, 'cash', Decimal('0'))
        assert cart_service.is_valid(draft, {'id': 1}) is False

    def test_invalid_without_customer(self, draft):
        draft = cart_service.recompute(cart_service.add_line(draft, _product(1)), None)
        draft = cart_service.apply_payment(draft, 'cash', Decimal('10.00'))
        assert cart_service.is_valid(draft, None) is False

    def test_invalid_without_payment_method(self, draft):
        draft = cart_service.recompute(cart_service.add_line(draft, _product(1)), 1)
        draft = cart_service.apply_payment(draft, '', Decimal('10.00'))
        assert cart_service.is_valid(draft, {'id': 1}) is False

    def test_invalid_when_underpaid(self, draft):
        draft = cart_service.recompute(cart_service.add_line(draft, _product(1)), 1)
        draft = cart_service.apply_payment(draft, 'cash', Decimal('9.99'))
        assert cart_service.is_valid(draft, {'id': 1}) is False

    def test_valid_when_complete(self, draft):
        draft = cart_service.recompute(cart_service.add_line(draft, _product(1)), 1)
        draft = cart_service.apply_payment(draft, 'cash', Decimal('10.00'))
        assert cart_service.is_valid(draft, {'id': 1}) is True


class TestTransition:

    @pytest.mark.parametrize('source,target', [
        (SalesStatus.IN_PROGRESS, SalesStatus.PAID),
        (SalesStatus.IN_PROGRESS, SalesStatus.PENDING),
        (SalesStatus.PENDING, SalesStatus.PAID),
        (SalesStatus.PAID, SalesStatus.REFUNDED),
        (SalesStatus.PAID, SalesStatus.RETURN),
    ])
    def test_allowed(self, draft, source, target):
        draft.status = source
        assert cart_service.transition(draft, target).status == target

    @pytest.mark.parametrize('source,target', [
        (SalesStatus.IN_PROGRESS, SalesStatus.REFUNDED),
        (SalesStatus.PENDING, SalesStatus.RETURN),
        (SalesStatus.PAID, SalesStatus.PENDING),
        (SalesStatus.REFUNDED, SalesStatus.PAID),
        (SalesStatus.CANCELLED, SalesStatus.PAID),
    ])
    def test_rejected(self, draft, source, target):
        draft.status = source
        with pytest.raises(ValidationError):
            cart_service.transition(draft, target)

    def test_cancel_sets_flag(self, draft):
        result = cart_service.transition(draft, SalesStatus.CANCELLED)
        assert result.is_cancelled is True
        assert draft.is_cancelled is False


class TestSessionSerialization:

    def test_draft_survives_session_storage(self, draft):
        draft = cart_service.add_line(draft, _product(11, '3.30'))
        draft = cart_service.recompute(draft, 2)
        draft = cart_service.apply_payment(draft, 'cash', Decimal('5'))
        draft.to_delete.append(SelectionDraft(item_index=0, product={}, item_id=9, id=77))

        data = cart_service.draft_to_dict(draft)
        assert data['status'] == 'in-progress'
        assert list(data['selections']) == ['11']
        assert data['total_due'] == '3.30'

        restored = cart_service.draft_from_dict(data)
        assert restored.selections[11].unit_price == Decimal('3.30')
        assert restored.total_due == Decimal('3.30')
        assert restored.change_due == Decimal('1.70')
        assert restored.status == SalesStatus.IN_PROGRESS
        assert restored.sales_date == draft.sales_date
        assert restored.to_delete[0].id == 77
