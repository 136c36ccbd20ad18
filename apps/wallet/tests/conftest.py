import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from apps.accounts.models import User


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


@pytest.fixture
def member(db):
    return User.objects.create_user(
        email='wallet@example.com',
        password='TestPass123!',
        display_name='Wallet Owner',
    )


@pytest.fixture
def authenticated_client(api_client, member):
    """Return an authenticated API client using JWT."""
    refresh = RefreshToken.for_user(member)
    api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return api_client
