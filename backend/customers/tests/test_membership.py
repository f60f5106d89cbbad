import pytest
from decimal import Decimal

from core_backend.exceptions import InactiveItemError, InvalidOrderError, NotFoundError
from customers.exceptions import InsufficientPointsError
from customers.models import Customer, PointsTransaction
from customers.services import MembershipService
from orders.calculators import LoyaltyConfig, MemberInfo


@pytest.mark.django_db
class TestMemberLookup:

    def test_member_info(self, gold_member):
        info = MembershipService.get_member_tier_and_points(gold_member.pk)
        assert info == MemberInfo(tier="gold", available_points=2000)

    def test_walk_in_has_no_member_info(self, db):
        assert MembershipService.get_member_tier_and_points(None) is None

    def test_unknown_customer(self, db):
        with pytest.raises(NotFoundError):
            MembershipService.get_customer(424242)

    def test_archived_customer(self, gold_member):
        gold_member.archive()
        with pytest.raises(InactiveItemError):
            MembershipService.get_customer(gold_member)


@pytest.mark.django_db
class TestPoints:

    def test_award_points(self, gold_member):
        customer = MembershipService.apply_points_delta(gold_member, 150, "Earned", "ORD-1")

        assert customer.points == 2150
        assert customer.points_used == 0
        entry = PointsTransaction.objects.get(customer=gold_member)
        assert (entry.delta, entry.balance_after, entry.reference_id) == (150, 2150, "ORD-1")

    def test_redeem_points_tracks_usage(self, gold_member):
        customer = MembershipService.apply_points_delta(gold_member.pk, -500, "Redeemed")

        assert customer.points == 1500
        assert customer.points_used == 500

    def test_redeeming_more_than_balance_fails(self, gold_member):
        with pytest.raises(InsufficientPointsError) as exc_info:
            MembershipService.apply_points_delta(gold_member, -2001, "Redeemed")

        assert exc_info.value.available == 2000
        gold_member.refresh_from_db()
        assert gold_member.points == 2000
        assert not PointsTransaction.objects.exists()

    def test_zero_delta_is_a_no_op(self, gold_member):
        MembershipService.apply_points_delta(gold_member, 0, "Nothing")
        assert not PointsTransaction.objects.exists()


@pytest.mark.django_db
class TestSpendAndTier:

    def test_add_spend_rounds_to_cents(self, bronze_member):
        customer = MembershipService.add_spend(bronze_member, Decimal("10.005"))
        assert customer.total_spent == Decimal("960.01")

    def test_negative_spend_is_rejected(self, bronze_member):
        with pytest.raises(InvalidOrderError):
            MembershipService.add_spend(bronze_member, Decimal("-1"))

    def test_tier_upgrade_at_threshold(self, bronze_member):
        MembershipService.add_spend(bronze_member, Decimal("50"))

        assert MembershipService.reevaluate_tier(bronze_member) == "silver"
        assert Customer.objects.get(pk=bronze_member.pk).tier == Customer.Tier.SILVER

    def test_tier_follows_lifetime_spend_downwards(self, gold_member):
        Customer.objects.filter(pk=gold_member.pk).update(total_spent=Decimal("999.99"))

        assert MembershipService.reevaluate_tier(gold_member) == "bronze"

    def test_custom_thresholds(self, bronze_member):
        config = LoyaltyConfig(tier_thresholds={"bronze": Decimal("0"), "silver": Decimal("500")})
        assert MembershipService.reevaluate_tier(bronze_member, config=config) == "silver"
