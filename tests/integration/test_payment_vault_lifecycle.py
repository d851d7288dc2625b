"""Integration tests for the payment vault on a real database

Exercises the single-default invariant through store, set-default,
deactivation and expired-card cleanup, plus a vault charge through the
NMI gateway over a scripted transport.
"""

import pytest
from datetime import datetime, timedelta
from decimal import Decimal
from unittest.mock import AsyncMock

from src.adapter.repositories import SqlAlchemyPaymentVaultRepository
from src.app.use_cases.vault import (
    ChargeVaultCommandDTO,
    ChargeWithVault,
    CleanupExpiredPaymentMethods,
    DeactivatePaymentMethod,
    GetDefaultPaymentMethod,
    GetPaymentMethod,
    GetVaultStatistics,
    ListPaymentMethods,
    SetDefaultPaymentMethod,
    StorePaymentMethod,
    StorePaymentMethodCommandDTO,
)

T0 = datetime(2025, 3, 1, 12, 0, 0)

APPROVED = (
    "<response><result>1</result><result-text>SUCCESS</result-text>"
    "<transaction-id>9001</transaction-id></response>"
)


async def store(uow, vault_repo, token, created_at, customer_id="cust_4821", month="08", year="2028"):
    use_case = StorePaymentMethod(uow, vault_repo, clock=lambda: created_at)
    result = await use_case.execute(
        StorePaymentMethodCommandDTO(
            customer_id=customer_id,
            gateway_customer_id="nmi_vault_99812",
            payment_method_token=token,
            last4_digits="4242",
            card_brand="visa",
            expiry_month=month,
            expiry_year=year,
        )
    )
    assert result.is_ok()
    return result.value


async def default_uuid(vault_repo, customer_id="cust_4821"):
    result = await GetDefaultPaymentMethod(vault_repo).execute(customer_id)
    return result.value.uuid if result.value else None


@pytest.mark.asyncio
async def test_first_entry_becomes_default(uow, vault_repo):
    """
    Given: A customer with no stored payment methods
    When: Two payment methods are stored
    Then: Only the first is the default; the list puts the default first
    """
    first = await store(uow, vault_repo, "tok_1", T0)
    second = await store(uow, vault_repo, "tok_2", T0 + timedelta(minutes=1))

    assert first.is_default is True
    assert second.is_default is False

    listed = (await ListPaymentMethods(vault_repo).execute("cust_4821")).value
    assert [m.uuid for m in listed] == [first.uuid, second.uuid]
    assert await default_uuid(vault_repo) == first.uuid


@pytest.mark.asyncio
async def test_insert_losing_default_race_is_stored_as_non_default(db_session, uow, vault_repo):
    """
    Given: A customer whose first card already holds the default
    When: A second insert reads "no default" (a concurrent writer's stale view)
    Then: The unique index rejects it as default and it is stored as non-default
    """
    # Arrange
    first = await store(uow, vault_repo, "tok_1", T0)
    stale_repo = SqlAlchemyPaymentVaultRepository(db_session)
    stale_repo.get_default_by_customer = AsyncMock(return_value=None)

    # Act
    second = await store(uow, stale_repo, "tok_2", T0 + timedelta(minutes=1))

    # Assert
    assert second.is_default is False
    db_session.expire_all()
    listed = (await ListPaymentMethods(vault_repo).execute("cust_4821")).value
    assert [(m.uuid, m.is_default) for m in listed] == [
        (first.uuid, True),
        (second.uuid, False),
    ]
    assert await default_uuid(vault_repo) == first.uuid


@pytest.mark.asyncio
async def test_set_default_moves_flag(db_session, uow, vault_repo):
    first = await store(uow, vault_repo, "tok_1", T0)
    second = await store(uow, vault_repo, "tok_2", T0 + timedelta(minutes=1))

    result = await SetDefaultPaymentMethod(uow, vault_repo).execute(second.uuid)

    assert result.value is True
    db_session.expire_all()
    assert await default_uuid(vault_repo) == second.uuid
    assert (await GetPaymentMethod(vault_repo).execute(first.uuid)).value.is_default is False


@pytest.mark.asyncio
async def test_deactivating_default_hands_off_to_newest(db_session, uow, vault_repo):
    """
    Given: Three entries, the oldest being default
    When: The default is deactivated
    Then: The most recently created remaining entry becomes default
    """
    first = await store(uow, vault_repo, "tok_1", T0)
    await store(uow, vault_repo, "tok_2", T0 + timedelta(minutes=1))
    third = await store(uow, vault_repo, "tok_3", T0 + timedelta(minutes=2))

    result = await DeactivatePaymentMethod(uow, vault_repo).execute(first.uuid)

    assert result.value is True
    db_session.expire_all()
    assert await default_uuid(vault_repo) == third.uuid

    deactivated = (await GetPaymentMethod(vault_repo).execute(first.uuid)).value
    assert deactivated.is_active is False
    assert deactivated.is_default is False

    again = await DeactivatePaymentMethod(uow, vault_repo).execute(first.uuid)
    assert again.value is False


@pytest.mark.asyncio
async def test_deactivating_sole_entry_leaves_no_default(db_session, uow, vault_repo):
    only = await store(uow, vault_repo, "tok_1", T0)

    await DeactivatePaymentMethod(uow, vault_repo).execute(only.uuid)

    db_session.expire_all()
    assert await default_uuid(vault_repo) is None
    assert (await ListPaymentMethods(vault_repo).execute("cust_4821")).value == []

    refused = await SetDefaultPaymentMethod(uow, vault_repo).execute(only.uuid)
    assert refused.value is False


@pytest.mark.asyncio
async def test_cleanup_expired_is_idempotent(db_session, uow, vault_repo):
    """
    Given: An expired default card and a valid card
    When: Cleanup runs twice on 2025-03-01
    Then: The first run deactivates the expired card and hands off the default;
          the second run finds nothing
    """
    expired = await store(uow, vault_repo, "tok_old", T0, month="1", year="25")
    valid = await store(uow, vault_repo, "tok_new", T0 + timedelta(minutes=1))
    # Still valid through the end of its expiry month
    await store(uow, vault_repo, "tok_edge", T0, customer_id="cust_other", month="03", year="2025")
    cleanup = CleanupExpiredPaymentMethods(uow, vault_repo, clock=lambda: T0)

    first_run = await cleanup.execute()
    second_run = await cleanup.execute()

    assert first_run.value.expired_found == 1
    assert first_run.value.deactivated == 1
    assert second_run.value.expired_found == 0
    assert second_run.value.deactivated == 0

    db_session.expire_all()
    assert (await GetPaymentMethod(vault_repo).execute(expired.uuid)).value.is_active is False
    assert await default_uuid(vault_repo) == valid.uuid

    stats = (await GetVaultStatistics(vault_repo, clock=lambda: T0).execute()).value
    assert stats.total == 3
    assert stats.active == 2
    assert stats.expired == 0


@pytest.mark.asyncio
async def test_vault_charge_stamps_last_used(
    db_session, uow, vault_repo, transaction_repo, make_gateway
):
    entry = await store(uow, vault_repo, "tok_1", T0)
    gateway, processor = make_gateway(APPROVED)
    use_case = ChargeWithVault(uow, vault_repo, gateway, clock=lambda: T0 + timedelta(hours=1))

    result = await use_case.execute(
        ChargeVaultCommandDTO(vault_uuid=entry.uuid, amount=Decimal("49.00"), currency="USD")
    )

    assert result.is_ok()
    assert result.value.transaction_id == "9001"
    assert len(processor.requests) == 1

    db_session.expire_all()
    stored = (await GetPaymentMethod(vault_repo).execute(entry.uuid)).value
    assert stored.last_used_at == T0 + timedelta(hours=1)
    assert len(await transaction_repo.get_by_transaction_id("9001")) == 1


@pytest.mark.asyncio
async def test_vault_charge_refuses_expired_card(uow, vault_repo, make_gateway):
    entry = await store(uow, vault_repo, "tok_1", T0, month="01", year="2025")
    gateway, processor = make_gateway()

    result = await ChargeWithVault(uow, vault_repo, gateway, clock=lambda: T0).execute(
        ChargeVaultCommandDTO(vault_uuid=entry.uuid, amount=Decimal("49.00"))
    )

    assert result.is_err()
    assert result.error.code == "PAYMENT_METHOD_EXPIRED"
    assert processor.requests == []
