"""Coupon aggregate, its administration and usage counting."""

from datetime import UTC, datetime
from enum import Enum

from protean import handle, invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Identifier, Integer, String
from protean.utils.globals import current_domain

from farmstand.domain import farmstand
from farmstand.utils.retry import process_with_retry


class DiscountType(Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


@farmstand.aggregate
class Coupon:
    code = String(required=True, max_length=50, unique=True)
    name = String(max_length=255)
    discount_type = String(choices=DiscountType, default=DiscountType.PERCENTAGE.value)
    value = Integer(required=True, min_value=0)
    usage_count = Integer(default=0, min_value=0)
    usage_limit = Integer(min_value=1)
    is_active = Boolean(default=True)
    starts_at = DateTime()
    ends_at = DateTime()

    @invariant.post
    def percentage_cannot_exceed_100(self):
        if self.discount_type == DiscountType.PERCENTAGE.value and self.value > 100:
            raise ValidationError({"value": ["Percentage discount cannot exceed 100"]})

    @invariant.post
    def window_must_be_ordered(self):
        if self.starts_at and self.ends_at and self.ends_at < self.starts_at:
            raise ValidationError({"ends_at": ["Coupon cannot end before it starts"]})

    def is_redeemable(self, at: datetime | None = None) -> bool:
        now = at or datetime.now(UTC)
        if not self.is_active:
            return False
        if self.starts_at and now < self.starts_at:
            return False
        if self.ends_at and now > self.ends_at:
            return False
        if self.usage_limit is not None and self.usage_count >= self.usage_limit:
            return False
        return True

    def discount_for(self, subtotal: int) -> int:
        if self.discount_type == DiscountType.PERCENTAGE.value:
            discount = subtotal * self.value // 100
        else:
            discount = self.value
        return max(0, min(discount, subtotal))

    def record_usage(self):
        self.usage_count += 1


@farmstand.repository(part_of=Coupon)
class CouponRepository:
    def find_by_code(self, code: str) -> Coupon | None:
        results = self._dao.query.filter(code=code.strip().upper()).all().items
        return results[0] if results else None


@farmstand.command(part_of=Coupon)
class CreateCoupon:
    code = String(required=True, max_length=50)
    name = String(max_length=255)
    discount_type = String(required=True, max_length=20)
    value = Integer(required=True, min_value=0)
    usage_limit = Integer(min_value=1)
    starts_at = DateTime()
    ends_at = DateTime()


@farmstand.command(part_of=Coupon)
class IncrementCouponUsage:
    coupon_id = Identifier(required=True)


@farmstand.command_handler(part_of=Coupon)
class CouponHandler:
    @handle(CreateCoupon)
    def create_coupon(self, command):
        repo = current_domain.repository_for(Coupon)
        code = command.code.strip().upper()
        if repo.find_by_code(code) is not None:
            raise ValidationError({"code": [f"Coupon code {code} already exists"]})

        coupon = Coupon(
            code=code,
            name=command.name,
            discount_type=command.discount_type,
            value=command.value,
            usage_limit=command.usage_limit,
            starts_at=command.starts_at,
            ends_at=command.ends_at,
        )
        repo.add(coupon)
        return str(coupon.id)

    @handle(IncrementCouponUsage)
    def increment_usage(self, command):
        repo = current_domain.repository_for(Coupon)
        coupon = repo.get(command.coupon_id)
        coupon.record_usage()
        repo.add(coupon)


def increment_coupon_usage(coupon_id: str) -> None:
    process_with_retry(lambda: IncrementCouponUsage(coupon_id=coupon_id))
