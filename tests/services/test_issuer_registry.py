"""Issuer authorization registry tests."""

from __future__ import annotations

import asyncio

import pytest

from skillcert.core.clock import ManualClock
from skillcert.core.errors import (
    AlreadyAuthorizedError,
    ForbiddenError,
    InvalidPrincipalError,
    NotAuthorizedError,
)
from skillcert.models.events import InstitutionAuthorized, InstitutionRevoked
from skillcert.models.principal import MAX_PRINCIPAL_LENGTH, ZERO_ADDRESS
from skillcert.repos.issuer_repo import InMemoryIssuerRepo
from skillcert.services.issuer_registry import IssuerRegistry
from skillcert.services.notifications import InMemoryNotifier
from tests.conftest import ADMIN, ISSUER, START, FlakyNotifier


@pytest.fixture
def registry(clock: ManualClock, notifier: InMemoryNotifier) -> IssuerRegistry:
    return IssuerRegistry(InMemoryIssuerRepo(), notifier, clock, admin=ADMIN)


def test_registry_requires_non_null_admin(
    clock: ManualClock, notifier: InMemoryNotifier
) -> None:
    with pytest.raises(ValueError):
        IssuerRegistry(InMemoryIssuerRepo(), notifier, clock, admin=ZERO_ADDRESS)


def test_authorize_records_entry_and_emits(
    registry: IssuerRegistry, notifier: InMemoryNotifier
) -> None:
    async def scenario():
        entry = await registry.authorize(ISSUER, "  Acme Academy ", caller=ADMIN)
        return entry, await registry.is_authorized(ISSUER)

    entry, authorized = asyncio.run(scenario())
    assert entry.issuer == ISSUER
    assert entry.label == "Acme Academy"
    assert entry.authorized is True
    assert entry.updated_at == START
    assert authorized is True
    assert notifier.published == [
        InstitutionAuthorized(issuer=ISSUER, label="Acme Academy", occurred_at=START)
    ]


def test_authorize_twice_conflicts(registry: IssuerRegistry) -> None:
    async def scenario():
        await registry.authorize(ISSUER, "Acme", caller=ADMIN)
        await registry.authorize(ISSUER, "Acme again", caller=ADMIN)

    with pytest.raises(AlreadyAuthorizedError):
        asyncio.run(scenario())


@pytest.mark.parametrize("issuer", ["", "  ", ZERO_ADDRESS])
def test_authorize_rejects_null_issuer(registry: IssuerRegistry, issuer: str) -> None:
    with pytest.raises(InvalidPrincipalError):
        asyncio.run(registry.authorize(issuer, "x", caller=ADMIN))


def test_non_admin_cannot_change_registry(
    registry: IssuerRegistry, notifier: InMemoryNotifier
) -> None:
    async def scenario():
        with pytest.raises(ForbiddenError):
            await registry.authorize(ISSUER, "Acme", caller=ISSUER)
        await registry.authorize(ISSUER, "Acme", caller=ADMIN)
        with pytest.raises(ForbiddenError):
            await registry.revoke(ISSUER, caller=ISSUER)
        return await registry.is_authorized(ISSUER)

    assert asyncio.run(scenario()) is True
    assert len(notifier.published) == 1


def test_admin_check_happens_before_validation(registry: IssuerRegistry) -> None:
    with pytest.raises(ForbiddenError):
        asyncio.run(registry.authorize("", "x", caller="someone-else"))


def test_revoke_clears_flag_keeps_entry(
    registry: IssuerRegistry, clock: ManualClock, notifier: InMemoryNotifier
) -> None:
    async def scenario():
        await registry.authorize(ISSUER, "Acme", caller=ADMIN)
        clock.advance(60)
        updated = await registry.revoke(ISSUER, caller=ADMIN)
        return updated, await registry.get(ISSUER), await registry.is_authorized(ISSUER)

    updated, stored, authorized = asyncio.run(scenario())
    assert updated.authorized is False
    assert updated.label == "Acme"
    assert updated.updated_at == START + 60
    assert stored == updated
    assert authorized is False
    assert notifier.published[-1] == InstitutionRevoked(
        issuer=ISSUER, occurred_at=START + 60
    )


def test_revoke_unknown_issuer_fails(registry: IssuerRegistry) -> None:
    with pytest.raises(NotAuthorizedError):
        asyncio.run(registry.revoke(ISSUER, caller=ADMIN))


def test_revoke_twice_fails(registry: IssuerRegistry, notifier: InMemoryNotifier) -> None:
    async def scenario():
        await registry.authorize(ISSUER, "Acme", caller=ADMIN)
        await registry.revoke(ISSUER, caller=ADMIN)
        with pytest.raises(NotAuthorizedError):
            await registry.revoke(ISSUER, caller=ADMIN)

    asyncio.run(scenario())
    assert [type(e) for e in notifier.published] == [
        InstitutionAuthorized,
        InstitutionRevoked,
    ]


def test_reauthorize_after_revoke_replaces_label(registry: IssuerRegistry) -> None:
    async def scenario():
        await registry.authorize(ISSUER, "Old name", caller=ADMIN)
        await registry.revoke(ISSUER, caller=ADMIN)
        await registry.authorize(ISSUER, "New name", caller=ADMIN)
        return await registry.get(ISSUER)

    entry = asyncio.run(scenario())
    assert entry.authorized is True
    assert entry.label == "New name"


def test_is_authorized_unknown_and_null_issuers(registry: IssuerRegistry) -> None:
    async def scenario():
        return (
            await registry.is_authorized(ISSUER),
            await registry.is_authorized(""),
            await registry.is_authorized(ZERO_ADDRESS),
        )

    assert asyncio.run(scenario()) == (False, False, False)


def test_list_issuers_filters_authorized(registry: IssuerRegistry) -> None:
    other = "0x3333333333333333333333333333333333333333"

    async def scenario():
        await registry.authorize(other, "Other", caller=ADMIN)
        await registry.authorize(ISSUER, "Acme", caller=ADMIN)
        await registry.revoke(other, caller=ADMIN)
        return (
            await registry.list_issuers(),
            await registry.list_issuers(authorized_only=True),
        )

    everything, active = asyncio.run(scenario())
    assert [e.issuer for e in everything] == [ISSUER, other]
    assert [e.issuer for e in active] == [ISSUER]


def test_is_admin_normalizes_whitespace(registry: IssuerRegistry) -> None:
    assert registry.is_admin(f"  {ADMIN} ") is True
    assert registry.is_admin(ISSUER) is False


# ---- notification failures roll the registry back ----


def test_first_authorization_undone_when_notification_fails(clock: ManualClock) -> None:
    registry = IssuerRegistry(
        InMemoryIssuerRepo(), FlakyNotifier("InstitutionAuthorized"), clock, admin=ADMIN
    )

    async def scenario():
        with pytest.raises(ConnectionError):
            await registry.authorize(ISSUER, "Acme", caller=ADMIN)
        return await registry.get(ISSUER), await registry.is_authorized(ISSUER)

    assert asyncio.run(scenario()) == (None, False)


def test_reauthorization_undone_when_notification_fails(clock: ManualClock) -> None:
    flaky = FlakyNotifier()
    registry = IssuerRegistry(InMemoryIssuerRepo(), flaky, clock, admin=ADMIN)

    async def scenario():
        await registry.authorize(ISSUER, "Old name", caller=ADMIN)
        revoked = await registry.revoke(ISSUER, caller=ADMIN)
        flaky.fail_on.add("InstitutionAuthorized")
        clock.advance(30)
        with pytest.raises(ConnectionError):
            await registry.authorize(ISSUER, "New name", caller=ADMIN)
        return revoked, await registry.get(ISSUER)

    revoked, stored = asyncio.run(scenario())
    assert stored == revoked
    assert stored.label == "Old name"


def test_issuer_revocation_undone_when_notification_fails(clock: ManualClock) -> None:
    flaky = FlakyNotifier("InstitutionRevoked")
    registry = IssuerRegistry(InMemoryIssuerRepo(), flaky, clock, admin=ADMIN)

    async def scenario():
        granted = await registry.authorize(ISSUER, "Acme", caller=ADMIN)
        clock.advance(60)
        with pytest.raises(ConnectionError):
            await registry.revoke(ISSUER, caller=ADMIN)
        stored = await registry.get(ISSUER)
        flaky.fail_on.clear()
        await registry.revoke(ISSUER, caller=ADMIN)
        return granted, stored

    granted, stored = asyncio.run(scenario())
    assert stored == granted
    assert [e.type for e in flaky.published] == [
        "InstitutionAuthorized",
        "InstitutionRevoked",
    ]


# ---- authorization is decided by the conditional write ----


class _StaleReadIssuerRepo(InMemoryIssuerRepo):
    """Reports every issuer as unknown, as a concurrent reader would see it
    before the competing authorization commits."""

    async def get(self, issuer: str):
        return None


def test_authorize_conflict_decided_by_store_not_prior_read(
    clock: ManualClock, notifier: InMemoryNotifier
) -> None:
    registry = IssuerRegistry(_StaleReadIssuerRepo(), notifier, clock, admin=ADMIN)

    async def scenario():
        await registry.authorize(ISSUER, "Acme", caller=ADMIN)
        with pytest.raises(AlreadyAuthorizedError):
            await registry.authorize(ISSUER, "Acme twice", caller=ADMIN)

    asyncio.run(scenario())
    assert len(notifier.published) == 1


def test_authorize_rejects_overlong_issuer(registry: IssuerRegistry) -> None:
    with pytest.raises(InvalidPrincipalError):
        asyncio.run(
            registry.authorize("i" * (MAX_PRINCIPAL_LENGTH + 1), "x", caller=ADMIN)
        )
