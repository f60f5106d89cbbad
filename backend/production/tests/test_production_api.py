"""
Production API integration tests.

Run with: pytest backend/production/tests/test_production_api.py -v
"""
import pytest

from django.urls import reverse

from orders.models import Order
from production.services import ProductionService


@pytest.mark.django_db
class TestProductionEndpoints:

    def test_requires_authentication(self, api_client, db):
        response = api_client.get(reverse("production:production-queue"))
        assert response.status_code in (401, 403)

    def test_start_and_second_start(self, authenticated_client, pending_order, staff_user):
        url = reverse("production:production-start", args=[pending_order.pk])

        response = authenticated_client.post(url)
        assert response.status_code == 200
        assert response.data["status"] == "making"
        assert response.data["production_stage"] == "preparing"
        assert response.data["assigned_to_username"] == staff_user.username

        response = authenticated_client.post(url)
        assert response.status_code == 409
        assert response.data["error"] == "invalid_transition"

    def test_advance_and_complete(self, authenticated_client, pending_order):
        authenticated_client.post(reverse("production:production-start", args=[pending_order.pk]))
        advance = reverse("production:production-advance", args=[pending_order.pk])
        for stage in ("mixing", "finishing", "quality_check", "ready_for_pickup"):
            response = authenticated_client.post(advance, {"stage": stage}, format="json")
            assert response.status_code == 200, stage

        assert response.data["status"] == "ready"
        assert response.data["progress_percentage"] == 100

        response = authenticated_client.post(
            reverse("production:production-complete", args=[pending_order.pk]),
            {"quality_notes": "Good", "rating": 4},
            format="json",
        )
        assert response.status_code == 200
        assert response.data["status"] == "completed"
        assert response.data["rating"] == 4

    def test_skipping_a_stage_returns_conflict(self, authenticated_client, pending_order):
        authenticated_client.post(reverse("production:production-start", args=[pending_order.pk]))

        response = authenticated_client.post(
            reverse("production:production-advance", args=[pending_order.pk]), {"stage": "finishing"}, format="json"
        )

        assert response.status_code == 409
        assert response.data["current"] == "preparing"

    def test_invalid_stage_and_rating(self, authenticated_client, pending_order):
        response = authenticated_client.post(
            reverse("production:production-advance", args=[pending_order.pk]), {"stage": "brewing"}, format="json"
        )
        assert response.status_code == 400

        response = authenticated_client.post(
            reverse("production:production-complete", args=[pending_order.pk]), {"rating": 9}, format="json"
        )
        assert response.status_code == 400

    def test_unknown_order(self, authenticated_client, db):
        response = authenticated_client.post(
            reverse("production:production-start", args=["00000000-0000-0000-0000-000000000000"])
        )
        assert response.status_code == 404

    def test_assign_and_priority(self, authenticated_client, pending_order, other_staff_user):
        response = authenticated_client.post(
            reverse("production:production-assign", args=[pending_order.pk]),
            {"staff": other_staff_user.pk},
            format="json",
        )
        assert response.status_code == 200
        assert response.data["assigned_to"] == other_staff_user.pk

        response = authenticated_client.post(
            reverse("production:production-priority", args=[pending_order.pk]), {"priority": "urgent"}, format="json"
        )
        assert response.status_code == 200
        assert response.data["priority"] == "urgent"

    def test_queue_and_my_queue(self, authenticated_client, pending_order, member_order, staff_user):
        ProductionService.start_production(member_order.pk, staff_user)

        response = authenticated_client.get(reverse("production:production-queue"))
        assert response.status_code == 200
        assert [row["id"] for row in response.data["pending"]] == [str(pending_order.pk)]
        assert [row["id"] for row in response.data["making"]] == [str(member_order.pk)]
        assert response.data["overdue"] == []

        response = authenticated_client.get(reverse("production:production-my-queue"))
        assert [row["id"] for row in response.data] == [str(member_order.pk)]

    def test_batch_start(self, authenticated_client, pending_order, member_order):
        missing = "00000000-0000-0000-0000-000000000000"
        response = authenticated_client.post(
            reverse("production:production-batch-start"),
            {"order_ids": [str(pending_order.pk), missing, str(member_order.pk)]},
            format="json",
        )

        assert response.status_code == 200
        assert len(response.data["started"]) == 2
        assert response.data["failures"][0]["order_id"] == missing
        assert Order.objects.filter(status=Order.Status.MAKING).count() == 2

    def test_progress(self, authenticated_client, pending_order):
        response = authenticated_client.get(reverse("production:production-progress", args=[pending_order.pk]))

        assert response.status_code == 200
        assert response.data["current_stage"] == "not_started"
        assert response.data["estimated_time_remaining"] == 10

    def test_estimate(self, authenticated_client, pearl_milk_tea):
        response = authenticated_client.post(
            reverse("production:production-estimate"),
            {"items": [{"product_id": pearl_milk_tea.pk, "quantity": 1}]},
            format="json",
        )

        assert response.status_code == 200
        assert response.data["estimated_minutes"] == 5.0

    def test_stats(self, authenticated_client, pending_order):
        response = authenticated_client.get(reverse("production:production-stats"), {"days": 7})

        assert response.status_code == 200
        assert response.data["period_days"] == 7
        assert response.data["total_orders"] == 1
