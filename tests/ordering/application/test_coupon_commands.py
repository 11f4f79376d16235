import pytest
from protean import current_domain
from protean.exceptions import ValidationError

from farmstand.ordering.coupon import Coupon, CreateCoupon, increment_coupon_usage


def _create(code="harvest10", **overrides):
    payload = {"code": code, "discount_type": "percentage", "value": 10} | overrides
    return current_domain.process(CreateCoupon(**payload), asynchronous=False)


class TestCouponCommands:
    def test_code_is_normalised(self):
        coupon_id = _create(" harvest10 ")

        assert current_domain.repository_for(Coupon).get(coupon_id).code == "HARVEST10"

    def test_lookup_is_case_insensitive(self):
        coupon_id = _create()

        assert str(current_domain.repository_for(Coupon).find_by_code("Harvest10").id) == coupon_id

    def test_duplicate_code_is_rejected(self):
        _create()

        with pytest.raises(ValidationError) as exc:
            _create("HARVEST10")

        assert "code" in exc.value.messages

    def test_increment_usage(self):
        coupon_id = _create(usage_limit=2)

        increment_coupon_usage(coupon_id)
        increment_coupon_usage(coupon_id)

        coupon = current_domain.repository_for(Coupon).get(coupon_id)
        assert coupon.usage_count == 2
        assert coupon.is_redeemable() is False
