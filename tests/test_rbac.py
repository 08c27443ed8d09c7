"""
Tests for role-based access control

Tests view permissions, the management hierarchy, password hashing,
authentication and session tokens.
"""

import pytest
from datetime import datetime, timedelta, timezone

from gocash.errors import AuthenticationError, PermissionDenied
from gocash.models import Role, User
from gocash.rbac import (
    View, authenticate, can_manage, can_view, decode_token, hash_password,
    issue_token, landing_view, make_credentials, managed_role, require_view,
    verify_password, views_for
)


SECRET = "test-secret-for-session-tokens-0001"


def make_user(id="u1", email="ana@paysd.com", role=Role.COLLECTOR, password="secret", parent_id=None):
    password_hash, password_salt = make_credentials(password)
    return User(id=id, name="Ana", email=email, role=role, password_hash=password_hash,
                password_salt=password_salt, parent_id=parent_id)


class TestViews:
    """Test which views each role may open"""

    def test_owner_views(self):
        assert views_for(Role.OWNER) == {View.DASHBOARD, View.COLLECTOR, View.ADMIN, View.SUPPORT}

    def test_supervisor_views(self):
        assert views_for(Role.SUPERVISOR) == {View.DASHBOARD, View.COLLECTOR, View.ADMIN}

    def test_collector_views(self):
        assert views_for(Role.COLLECTOR) == {View.COLLECTOR, View.SUPPORT}

    def test_client_views(self):
        assert views_for(Role.CLIENT) == {View.CLIENT, View.SUPPORT}

    def test_client_cannot_open_dashboard(self):
        assert not can_view(Role.CLIENT, View.DASHBOARD)

    def test_require_view_raises(self):
        with pytest.raises(PermissionDenied):
            require_view(make_user(role=Role.CLIENT), View.ADMIN)

    def test_landing_views(self):
        assert landing_view(Role.COLLECTOR) == View.COLLECTOR
        assert landing_view(Role.CLIENT) == View.CLIENT
        assert landing_view(Role.OWNER) == View.DASHBOARD
        assert landing_view(Role.SUPERVISOR) == View.DASHBOARD


class TestHierarchy:
    """Test who may create and edit whom"""

    def test_managed_roles(self):
        assert managed_role(Role.OWNER) == Role.SUPERVISOR
        assert managed_role(Role.SUPERVISOR) == Role.COLLECTOR
        assert managed_role(Role.COLLECTOR) == Role.CLIENT

    def test_client_manages_nobody(self):
        with pytest.raises(PermissionDenied):
            managed_role(Role.CLIENT)

    def test_can_manage_own_children_only(self):
        owner = make_user(id="admin-1", role=Role.OWNER)
        supervisor = make_user(id="sup-1", role=Role.SUPERVISOR, parent_id="admin-1")
        other = make_user(id="sup-2", role=Role.SUPERVISOR, parent_id="admin-2")

        assert can_manage(owner, supervisor)
        assert not can_manage(owner, other)

    def test_cannot_manage_wrong_role(self):
        owner = make_user(id="admin-1", role=Role.OWNER)
        collector = make_user(id="rec-1", role=Role.COLLECTOR, parent_id="admin-1")
        assert not can_manage(owner, collector)


class TestPasswords:
    """Test password hashing"""

    def test_hash_is_deterministic_per_salt(self):
        assert hash_password("pw", "salt") == hash_password("pw", "salt")
        assert hash_password("pw", "salt") != hash_password("pw", "other")

    def test_credentials_use_fresh_salt(self):
        first = make_credentials("pw")
        second = make_credentials("pw")
        assert first[1] != second[1]
        assert first[0] != second[0]

    def test_verify_password(self):
        user = make_user(password="secret")
        assert verify_password(user, "secret")
        assert not verify_password(user, "wrong")

    def test_user_without_credentials_never_verifies(self):
        user = User(id="u1", name="Ana", email="a@b.c", role=Role.CLIENT)
        assert not verify_password(user, "")


class TestAuthenticate:
    """Test credential matching"""

    def setup_method(self):
        self.users = [
            make_user(id="rec-1", email="juan@paysd.com", role=Role.COLLECTOR, password="rec123"),
            make_user(id="cli-1", email="maria@gmail.com", role=Role.CLIENT, password="cli123"),
        ]

    def test_valid_credentials(self):
        user = authenticate(self.users, "juan@paysd.com", "rec123", Role.COLLECTOR)
        assert user.id == "rec-1"

    def test_email_case_insensitive(self):
        user = authenticate(self.users, "  JUAN@PaySD.com", "rec123", Role.COLLECTOR)
        assert user.id == "rec-1"

    def test_wrong_password(self):
        with pytest.raises(AuthenticationError):
            authenticate(self.users, "juan@paysd.com", "nope", Role.COLLECTOR)

    def test_wrong_role(self):
        with pytest.raises(AuthenticationError):
            authenticate(self.users, "juan@paysd.com", "rec123", Role.SUPERVISOR)

    def test_unknown_email(self):
        with pytest.raises(AuthenticationError):
            authenticate(self.users, "nobody@paysd.com", "rec123", Role.COLLECTOR)


class TestTokens:
    """Test session token issue and decode"""

    def test_round_trip_subject(self):
        user = make_user(id="rec-1")
        token = issue_token(user, SECRET)
        assert decode_token(token, SECRET) == "rec-1"

    def test_wrong_secret(self):
        token = issue_token(make_user(), SECRET)
        with pytest.raises(AuthenticationError):
            decode_token(token, "another-secret-for-session-tokens-02")

    def test_expired_token(self):
        issued = datetime.now(timezone.utc) - timedelta(hours=5)
        token = issue_token(make_user(), SECRET, expiry_hours=1, now=issued)
        with pytest.raises(AuthenticationError, match="expired"):
            decode_token(token, SECRET)

    def test_garbage_token(self):
        with pytest.raises(AuthenticationError):
            decode_token("not-a-token", SECRET)
