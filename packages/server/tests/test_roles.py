"""
Tests for the role hierarchy and caller resolution.

Tests cover:
- Total order of roles and role_at_least
- Resolution failure order: account, company context, membership, role
- Authorization is checked before any domain validation
"""

from __future__ import annotations

import itertools
import uuid

import pytest

from app.core.exceptions import (
    InsufficientRole,
    NoActiveCompany,
    NotAMember,
    Unauthenticated,
)
from app.services.cascade import delete_company
from app.services.connections import request_connection
from app.services.roles import check_role, resolve
from signdir_shared.schemas.common import ROLE_LEVELS, Role, role_at_least, role_level

ORDERED = [Role.OWNER, Role.ADMIN, Role.MEMBER, Role.INSTALLER, Role.FIELD, Role.PENDING]


class TestRoleHierarchy:
    """Role levels form a strict total order."""

    def test_every_role_has_a_distinct_level(self):
        assert set(ROLE_LEVELS) == set(Role)
        assert len(set(ROLE_LEVELS.values())) == len(Role)

    def test_levels_descend_in_declared_order(self):
        levels = [role_level(r) for r in ORDERED]
        assert levels == sorted(levels, reverse=True)

    def test_role_at_least_is_consistent_with_levels(self):
        for a, b in itertools.product(Role, repeat=2):
            assert role_at_least(a, b) == (ROLE_LEVELS[a] >= ROLE_LEVELS[b])

    def test_accepts_stored_string_values(self):
        assert role_level("admin") == role_level(Role.ADMIN)
        assert role_at_least("owner", "member")
        assert not role_at_least("pending", "field")

    def test_check_role_raises_below_minimum(self):
        check_role(Role.ADMIN, Role.ADMIN)
        with pytest.raises(InsufficientRole):
            check_role(Role.MEMBER, Role.ADMIN)


@pytest.mark.asyncio
class TestResolve:
    """Caller resolution against the store."""

    async def test_unknown_identity_is_unauthenticated(self, call):
        with pytest.raises(Unauthenticated):
            await call(resolve, "ghost", Role.FIELD)

    async def test_account_without_company(self, call, register):
        await register("alice")
        with pytest.raises(NoActiveCompany):
            await call(resolve, "alice", Role.PENDING)

    async def test_owner_resolves_with_active_company(self, call, make_company):
        company = await make_company("alice", "acme-signs")
        resolved = await call(resolve, "alice", Role.OWNER)
        assert resolved.company_id == company.id
        assert resolved.role == Role.OWNER
        assert resolved.identity == "alice"

    async def test_explicit_company_without_membership(self, call, make_company):
        await make_company("alice", "acme-signs")
        other = await make_company("bob", "bolt-install")
        with pytest.raises(NotAMember):
            await call(resolve, "alice", Role.FIELD, company_id=other.id)

    async def test_role_below_minimum(self, call, make_company, add_member):
        await make_company("alice", "acme-signs")
        await add_member("alice", "carol", Role.FIELD)
        with pytest.raises(InsufficientRole):
            await call(resolve, "carol", Role.INSTALLER)
        resolved = await call(resolve, "carol", Role.FIELD)
        assert resolved.role == Role.FIELD

    async def test_company_deletion_clears_member_cursor(self, call, make_company, add_member):
        await make_company("alice", "acme-signs")
        await add_member("alice", "carol")
        await call(delete_company, "alice")
        with pytest.raises(NoActiveCompany):
            await call(resolve, "carol", Role.PENDING)

    async def test_authorization_precedes_validation(self, call, make_company, add_member):
        await make_company("alice", "acme-signs")
        await add_member("alice", "carol", Role.FIELD)
        # The target does not exist, but the role check fails first
        with pytest.raises(InsufficientRole):
            await call(request_connection, "carol", uuid.uuid4(), "")

    async def test_pending_member_cannot_act(self, call, make_company, add_member):
        await make_company("alice", "acme-signs")
        await add_member("alice", "dave", Role.PENDING)
        with pytest.raises(InsufficientRole):
            await call(resolve, "dave", Role.FIELD)
