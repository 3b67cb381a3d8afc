import pytest
from django.contrib.auth.models import User
from rest_framework.test import APIClient

from devices.services import get_registry


@pytest.fixture
def registry():
    return get_registry()


@pytest.fixture
def user(db):
    return User.objects.create_user(username='warehouse', password='scan-it-123')


@pytest.fixture
def api_client(user):
    client = APIClient()
    client.force_authenticate(user=user)
    return client
