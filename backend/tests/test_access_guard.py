"""
PostDesk Backend — Access Guard & Authentication Tests
========================================================

What we test:
    ✅ Declared {ADMIN, MANAGER}: USER denied, ADMIN/MANAGER allowed, anonymous denied
    ✅ Undeclared routes allow everyone, including anonymous callers
    ✅ The FastAPI dependency reads principal and guard from the request
    ✅ Gateway headers → Principal (unknown role / missing or over-long id → anonymous)
"""

from types import SimpleNamespace

import pytest

from postdesk.exceptions import ForbiddenError
from postdesk.schemas.auth import PRINCIPAL_ID_MAX_LENGTH, Principal, Role
from postdesk.services.access_guard import (
    DENIED_MESSAGE,
    NO_PRINCIPAL_MESSAGE,
    AccessGuard,
    require_capability,
)
from postdesk.services.authentication import GatewayHeaderAuthenticator


def _principal(role: Role) -> Principal:
    return Principal(id="caller-1", role=role)


class TestAccessGuard:
    def setup_method(self):
        self.guard = AccessGuard()

    @pytest.mark.parametrize("role", [Role.ADMIN, Role.MANAGER])
    def test_staff_may_delete_users(self, role):
        self.guard.authorize("users.delete", _principal(role))

    def test_user_may_not_delete_users(self):
        with pytest.raises(ForbiddenError) as exc_info:
            self.guard.authorize("users.delete", _principal(Role.USER))
        assert exc_info.value.message == DENIED_MESSAGE
        assert exc_info.value.status_code == 403

    def test_anonymous_caller_denied_on_declared_route(self):
        with pytest.raises(ForbiddenError) as exc_info:
            self.guard.authorize("users.delete", None)
        assert exc_info.value.message == NO_PRINCIPAL_MESSAGE

    @pytest.mark.parametrize("principal", [None, _principal(Role.USER), _principal(Role.ADMIN)])
    def test_undeclared_route_allows_everyone(self, principal):
        assert self.guard.evaluate("users.list", principal) is True
        self.guard.authorize("users.list", principal)

    @pytest.mark.parametrize("role", list(Role))
    def test_any_account_may_create_posts(self, role):
        assert self.guard.evaluate("posts.create", _principal(role)) is True

    def test_custom_capability_table(self):
        guard = AccessGuard({"reports.export": (Role.ADMIN,)})
        assert guard.evaluate("reports.export", _principal(Role.ADMIN)) is True
        assert guard.evaluate("reports.export", _principal(Role.MANAGER)) is False
        assert guard.required_roles("users.delete") is None


class TestRequireCapability:
    @staticmethod
    def _request(principal=None, with_principal=True):
        state = SimpleNamespace(principal=principal) if with_principal else SimpleNamespace()
        app = SimpleNamespace(state=SimpleNamespace(access_guard=AccessGuard()))
        return SimpleNamespace(state=state, app=app)

    def test_returns_principal_when_allowed(self):
        principal = _principal(Role.MANAGER)
        dependency = require_capability("users.update")
        assert dependency(self._request(principal)) is principal

    def test_raises_when_denied(self):
        dependency = require_capability("users.update")
        with pytest.raises(ForbiddenError):
            dependency(self._request(_principal(Role.USER)))

    def test_missing_principal_attribute_counts_as_anonymous(self):
        dependency = require_capability("posts.delete")
        with pytest.raises(ForbiddenError):
            dependency(self._request(with_principal=False))


class TestGatewayHeaderAuthenticator:
    def setup_method(self):
        self.authenticator = GatewayHeaderAuthenticator()

    def test_resolves_principal(self):
        principal = self.authenticator.authenticate({"x-user-id": "42", "x-user-role": "manager"})
        assert principal == Principal(id="42", role=Role.MANAGER)

    def test_header_names_are_case_insensitive(self):
        principal = self.authenticator.authenticate({"X-User-Id": "42", "X-User-Role": "ADMIN"})
        assert principal.role == Role.ADMIN

    def test_missing_id_is_anonymous(self):
        assert self.authenticator.authenticate({"x-user-role": "ADMIN"}) is None

    def test_unknown_role_is_anonymous(self):
        assert self.authenticator.authenticate({"x-user-id": "42", "x-user-role": "ROOT"}) is None

    def test_id_at_column_width_is_accepted(self):
        principal_id = "u" * PRINCIPAL_ID_MAX_LENGTH
        principal = self.authenticator.authenticate({"x-user-id": principal_id, "x-user-role": "USER"})
        assert principal.id == principal_id

    def test_over_long_id_is_anonymous(self):
        headers = {"x-user-id": "u" * (PRINCIPAL_ID_MAX_LENGTH + 1), "x-user-role": "USER"}
        assert self.authenticator.authenticate(headers) is None

    def test_custom_header_names(self):
        authenticator = GatewayHeaderAuthenticator(id_header="X-Sub", role_header="X-Role")
        principal = authenticator.authenticate({"x-sub": "7", "x-role": "USER"})
        assert principal == Principal(id="7", role=Role.USER)
