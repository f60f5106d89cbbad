"""
Orders API integration tests.

Run with: pytest backend/orders/tests/test_orders_api.py -v
"""
import pytest
from decimal import Decimal

from django.urls import reverse

from inventory.models import InventoryItem
from orders.models import Order


@pytest.mark.django_db
class TestOrderCreateEndpoint:

    def test_requires_authentication(self, api_client, lemon_tea):
        response = api_client.post(
            reverse("orders:order-list"),
            {"items": [{"product_id": lemon_tea.pk, "quantity": 1}]},
            format="json",
        )
        assert response.status_code in (401, 403)
        assert not Order.objects.exists()

    def test_create_walk_in_order(self, authenticated_client, staff_user, pearl_milk_tea, brown_sugar_latte):
        response = authenticated_client.post(
            reverse("orders:order-list"),
            {
                "items": [
                    {"product_id": pearl_milk_tea.pk, "quantity": 2},
                    {"product_id": brown_sugar_latte.pk, "quantity": 1},
                ],
                "notes": "Less ice",
            },
            format="json",
        )

        assert response.status_code == 201
        assert Decimal(response.data["final_amount"]) == Decimal("52.00")
        assert response.data["points_earned"] == 52
        assert response.data["status"] == "pending"
        assert response.data["staff_username"] == staff_user.username
        assert response.data["notes"] == "Less ice"
        assert len(response.data["items"]) == 2
        assert response.data["total_items"] == 3

    def test_create_member_order(self, authenticated_client, gold_member, pearl_milk_tea):
        response = authenticated_client.post(
            reverse("orders:order-list"),
            {"items": [{"product_id": pearl_milk_tea.pk, "quantity": 2}], "customer_id": gold_member.pk},
            format="json",
        )

        assert response.status_code == 201
        assert response.data["customer"] == gold_member.pk
        assert Decimal(response.data["final_amount"]) == Decimal("14.04")
        assert response.data["points_used"] == 2000

    def test_create_with_explicit_member_info(self, authenticated_client, lemon_tea):
        response = authenticated_client.post(
            reverse("orders:order-list"),
            {
                "items": [{"product_id": lemon_tea.pk, "quantity": 1}],
                "member_info": {"tier": "platinum", "available_points": 0},
            },
            format="json",
        )

        assert response.status_code == 201
        assert Decimal(response.data["discount_amount"]) == Decimal("1.20")

    @pytest.mark.parametrize(
        "payload",
        [
            {"items": []},
            {},
            {"items": [{"product_id": 1, "quantity": 0}]},
            {"items": [{"product_id": 1, "quantity": 1, "unit_price": "0.00"}]},
            {"items": [{"product_id": 1, "quantity": 1}], "member_info": {"tier": "diamond"}},
        ],
    )
    def test_invalid_payload(self, authenticated_client, db, payload):
        response = authenticated_client.post(reverse("orders:order-list"), payload, format="json")
        assert response.status_code == 400

    def test_insufficient_stock_returns_shortages(
        self, authenticated_client, pearl_milk_tea, brown_sugar_latte, pearls
    ):
        response = authenticated_client.post(
            reverse("orders:order-list"),
            {
                "items": [
                    {"product_id": pearl_milk_tea.pk, "quantity": 6},
                    {"product_id": brown_sugar_latte.pk, "quantity": 6},
                ]
            },
            format="json",
        )

        assert response.status_code == 409
        assert response.data["error"] == "insufficient_stock"
        shortage = response.data["shortages"][0]
        assert shortage["ingredient_id"] == str(pearls.pk)
        assert Decimal(shortage["required"]) == Decimal("6")
        assert Decimal(shortage["available"]) == Decimal("5")
        assert not Order.objects.exists()
        assert InventoryItem.objects.get(pk=pearls.pk).current_stock == Decimal("5.000")

    def test_unknown_product(self, authenticated_client, db):
        response = authenticated_client.post(
            reverse("orders:order-list"), {"items": [{"product_id": 424242, "quantity": 1}]}, format="json"
        )
        assert response.status_code == 404
        assert response.data["error"] == "not_found"


@pytest.mark.django_db
class TestOrderReadAndStatusEndpoints:

    def test_list_filter_by_status(self, authenticated_client, pending_order, member_order):
        authenticated_client.post(
            reverse("orders:order-update-status", args=[member_order.pk]), {"status": "making"}, format="json"
        )

        response = authenticated_client.get(reverse("orders:order-list"), {"status": "pending"})

        assert response.status_code == 200
        assert [row["order_number"] for row in response.data["results"]] == [pending_order.order_number]

    def test_retrieve(self, authenticated_client, pending_order):
        response = authenticated_client.get(reverse("orders:order-detail", args=[pending_order.pk]))

        assert response.status_code == 200
        assert response.data["order_number"] == pending_order.order_number
        assert response.data["progress_percentage"] == 0

    def test_retrieve_unknown(self, authenticated_client, db):
        response = authenticated_client.get(
            reverse("orders:order-detail", args=["00000000-0000-0000-0000-000000000000"])
        )
        assert response.status_code == 404

    def test_update_status(self, authenticated_client, pending_order):
        response = authenticated_client.post(
            reverse("orders:order-update-status", args=[pending_order.pk]), {"status": "ready"}, format="json"
        )

        assert response.status_code == 200
        assert response.data["status"] == "ready"
        assert response.data["production_stage"] == "ready_for_pickup"

    def test_invalid_transition_returns_conflict(self, authenticated_client, pending_order):
        url = reverse("orders:order-update-status", args=[pending_order.pk])
        authenticated_client.post(url, {"status": "ready"}, format="json")

        response = authenticated_client.post(url, {"status": "making"}, format="json")

        assert response.status_code == 409
        assert response.data["error"] == "invalid_transition"
        assert response.data["current"] == "ready"
        assert response.data["attempted"] == "making"

    def test_cancel(self, authenticated_client, pending_order, pearls):
        response = authenticated_client.post(
            reverse("orders:order-cancel", args=[pending_order.pk]), {"reason": "Wrong order"}, format="json"
        )

        assert response.status_code == 200
        assert response.data["status"] == "cancelled"
        assert "Wrong order" in response.data["notes"]
        assert InventoryItem.objects.get(pk=pearls.pk).current_stock == Decimal("5.000")

    def test_cancel_completed_order(self, authenticated_client, pending_order):
        authenticated_client.post(
            reverse("orders:order-update-status", args=[pending_order.pk]), {"status": "completed"}, format="json"
        )

        response = authenticated_client.post(reverse("orders:order-cancel", args=[pending_order.pk]), {}, format="json")

        assert response.status_code == 409
        assert response.data["error"] == "already_completed"
