"""
Root conftest.py for all backend tests.

This file makes fixtures available to all test files across all apps.
"""
import pytest
from django.test import override_settings


# ============================================================================
# AUTO-USE FIXTURES (Run automatically for every test)
# ============================================================================

@pytest.fixture(autouse=True)
def eager_celery():
    """
    Run Celery tasks inline for every test.

    The loyalty task is dispatched from transaction.on_commit, so tests that
    need it to run wrap the completion in
    ``django_capture_on_commit_callbacks(execute=True)``.
    """
    from core_backend.celery import app

    previous = app.conf.task_always_eager
    app.conf.task_always_eager = True
    yield
    app.conf.task_always_eager = previous


# ============================================================================
# OPTIONAL FIXTURES (Use explicitly when needed)
# ============================================================================

@pytest.fixture
def api_client():
    """
    Provide DRF API client for API tests.

    Usage:
        def test_my_api(api_client):
            response = api_client.get('/api/orders/')
            assert response.status_code == 403
    """
    from rest_framework.test import APIClient
    return APIClient()


@pytest.fixture
def authenticated_client(api_client, staff_user):
    """
    API client logged in as ``staff_user``.

    Usage:
        def test_protected_endpoint(authenticated_client):
            response = authenticated_client.get('/api/orders/')
            assert response.status_code == 200
    """
    api_client.force_authenticate(user=staff_user)
    return api_client


@pytest.fixture
def blocking_inventory_locks():
    """Wait for row locks instead of failing fast (threaded tests)."""
    from django.conf import settings

    fulfillment = dict(settings.FULFILLMENT, INVENTORY_LOCK_NOWAIT=False)
    with override_settings(FULFILLMENT=fulfillment):
        yield


# Import all fixtures from fixtures.py to make them available globally
from core_backend.tests.fixtures import *  # noqa: E402,F401,F403
