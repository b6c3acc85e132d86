from __future__ import annotations

import pytest

from src.break_tracker.break_tracker.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from src.break_tracker.break_tracker.members.model import Member
from src.break_tracker.break_tracker.members.service import RosterService
from tests.fakes import InMemoryMembers


@pytest.mark.asyncio
async def test_admin_adds_member_with_normalized_fields():
    repo = InMemoryMembers()
    svc = RosterService(repo)

    member = await svc.add_member(actor_is_admin=True, name="  Ana  ", email=" Ana@Example.com ")

    assert member.name == "Ana"
    assert member.email == "ana@example.com"
    assert repo.by_id[member.member_id] == member


@pytest.mark.asyncio
async def test_non_admin_cannot_change_roster():
    repo = InMemoryMembers([Member(1, "Ana")])
    svc = RosterService(repo)

    with pytest.raises(AuthorizationError):
        await svc.add_member(actor_is_admin=False, name="Bo")
    with pytest.raises(AuthorizationError):
        await svc.remove_member(actor_is_admin=False, member_id=1)
    assert 1 in repo.by_id


@pytest.mark.asyncio
@pytest.mark.parametrize("name,email", [("", None), ("   ", None), ("Bo", "not-an-email")])
async def test_invalid_member_input_is_rejected(name, email):
    svc = RosterService(InMemoryMembers())

    with pytest.raises(ValidationError):
        await svc.add_member(actor_is_admin=True, name=name, email=email)


@pytest.mark.asyncio
async def test_removing_twice_reports_already_removed():
    svc = RosterService(InMemoryMembers([Member(1, "Ana")]))

    await svc.remove_member(actor_is_admin=True, member_id=1)
    with pytest.raises(NotFoundError, match="already removed"):
        await svc.remove_member(actor_is_admin=True, member_id=1)
    assert await svc.list_members() == []
