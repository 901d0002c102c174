"""Unit tests for caller identity resolution and ownership."""

from __future__ import annotations

from types import SimpleNamespace

import pytest
from django.contrib.auth.models import AnonymousUser
from rest_framework.exceptions import NotAuthenticated

from modules.core.authentication import Auth0User
from modules.core.identity import CallerIdentity, identity_from_request

pytestmark = pytest.mark.unit


class TestOwns:
    def test_matches_user_id(self):
        assert CallerIdentity("u-1").owns("u-1", "")

    def test_matches_guest_email_ignoring_case_and_spaces(self):
        caller = CallerIdentity("u-1", email="Ana@Example.com")
        assert caller.owns("", " ana@example.COM ")

    def test_other_user(self):
        assert not CallerIdentity("u-1", email="a@example.com").owns("u-2", "")

    def test_email_does_not_claim_registered_order(self):
        caller = CallerIdentity("u-1", email="a@example.com")
        assert not caller.owns("u-2", "b@example.com")

    def test_empty_owner_never_matches(self):
        assert not CallerIdentity("", email=None).owns("", "")


class TestIdentityFromRequest:
    def test_identity_provider_principal(self):
        user = Auth0User({"sub": "auth0|abc", "email": "ana@example.com"})

        identity = identity_from_request(SimpleNamespace(user=user))

        assert identity == CallerIdentity("auth0|abc", "ana@example.com")

    def test_local_user(self, shopper):
        identity = identity_from_request(SimpleNamespace(user=shopper))

        assert identity == CallerIdentity(str(shopper.pk), "shopper@example.com")

    def test_local_user_without_email(self, django_user_model):
        user = django_user_model.objects.create_user(username="noemail", password="x")

        assert identity_from_request(SimpleNamespace(user=user)).email is None

    def test_anonymous(self):
        with pytest.raises(NotAuthenticated):
            identity_from_request(SimpleNamespace(user=AnonymousUser()))
