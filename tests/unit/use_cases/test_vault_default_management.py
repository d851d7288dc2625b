"""Unit tests for SetDefaultPaymentMethod and DeactivatePaymentMethod"""

import pytest
from datetime import datetime
from unittest.mock import AsyncMock, MagicMock

from src.app.use_cases.vault import SetDefaultPaymentMethod, DeactivatePaymentMethod
from src.domain.payment_vault import PaymentVaultEntry

NOW = datetime(2025, 3, 1, 12, 0, 0)


def make_entry(entry_id: int, is_default: bool = False, is_active: bool = True) -> PaymentVaultEntry:
    return PaymentVaultEntry(
        id=entry_id,
        uuid=f"00000000-0000-4000-8000-00000000000{entry_id}",
        customer_id="cust_4821",
        gateway_customer_id="nmi_vault_99812",
        payment_method_token=f"tok_{entry_id}",
        is_default=is_default,
        is_active=is_active,
    )


@pytest.fixture
def mock_vault_repo():
    repo = MagicMock()
    repo.set_default = AsyncMock(return_value=True)
    repo.deactivate = AsyncMock(return_value=True)
    repo.promote_successor = AsyncMock(return_value=None)
    return repo


@pytest.mark.asyncio
class TestSetDefaultPaymentMethod:

    async def test_sets_default(self, mock_uow, mock_vault_repo):
        entry = make_entry(2)
        mock_vault_repo.get_by_uuid = AsyncMock(return_value=entry)
        use_case = SetDefaultPaymentMethod(mock_uow, mock_vault_repo, clock=lambda: NOW)

        result = await use_case.execute(entry.uuid)

        assert result.is_ok()
        assert result.value is True
        mock_vault_repo.set_default.assert_awaited_once_with(entry, NOW)
        mock_uow.commit.assert_awaited_once()

    @pytest.mark.parametrize("entry", [None, make_entry(3, is_active=False)])
    async def test_missing_or_inactive(self, mock_uow, mock_vault_repo, entry):
        mock_vault_repo.get_by_uuid = AsyncMock(return_value=entry)
        use_case = SetDefaultPaymentMethod(mock_uow, mock_vault_repo)

        result = await use_case.execute("00000000-0000-4000-8000-000000000003")

        assert result.is_ok()
        assert result.value is False
        mock_vault_repo.set_default.assert_not_called()

    async def test_lost_race_rolls_back(self, mock_uow, mock_vault_repo):
        mock_vault_repo.get_by_uuid = AsyncMock(return_value=make_entry(2))
        mock_vault_repo.set_default = AsyncMock(return_value=False)
        use_case = SetDefaultPaymentMethod(mock_uow, mock_vault_repo)

        result = await use_case.execute("00000000-0000-4000-8000-000000000002")

        assert result.value is False
        mock_uow.rollback.assert_awaited_once()
        mock_uow.commit.assert_not_called()

    async def test_persistence_failure(self, mock_uow, mock_vault_repo):
        mock_vault_repo.get_by_uuid = AsyncMock(return_value=make_entry(2))
        mock_vault_repo.set_default = AsyncMock(side_effect=Exception("deadlock"))
        use_case = SetDefaultPaymentMethod(mock_uow, mock_vault_repo)

        result = await use_case.execute("00000000-0000-4000-8000-000000000002")

        assert result.is_err()
        assert result.error.code == "SET_DEFAULT_FAILED"


@pytest.mark.asyncio
class TestDeactivatePaymentMethod:

    async def test_default_hands_off(self, mock_uow, mock_vault_repo):
        """
        Given: The customer's default entry
        When: It is deactivated
        Then: A successor is promoted in the same transaction
        """
        entry = make_entry(1, is_default=True)
        mock_vault_repo.get_by_uuid = AsyncMock(return_value=entry)
        mock_vault_repo.promote_successor = AsyncMock(return_value=make_entry(2, is_default=True))
        use_case = DeactivatePaymentMethod(mock_uow, mock_vault_repo, clock=lambda: NOW)

        result = await use_case.execute(entry.uuid)

        assert result.value is True
        mock_vault_repo.deactivate.assert_awaited_once_with(entry, NOW)
        mock_vault_repo.promote_successor.assert_awaited_once_with("cust_4821", NOW)
        mock_uow.commit.assert_awaited_once()

    async def test_non_default_does_not_promote(self, mock_uow, mock_vault_repo):
        entry = make_entry(2)
        mock_vault_repo.get_by_uuid = AsyncMock(return_value=entry)
        use_case = DeactivatePaymentMethod(mock_uow, mock_vault_repo)

        result = await use_case.execute(entry.uuid)

        assert result.value is True
        mock_vault_repo.promote_successor.assert_not_called()

    async def test_already_inactive(self, mock_uow, mock_vault_repo):
        mock_vault_repo.get_by_uuid = AsyncMock(return_value=make_entry(2, is_active=False))
        use_case = DeactivatePaymentMethod(mock_uow, mock_vault_repo)

        result = await use_case.execute("00000000-0000-4000-8000-000000000002")

        assert result.value is False
        mock_vault_repo.deactivate.assert_not_called()

    async def test_concurrent_deactivation(self, mock_uow, mock_vault_repo):
        mock_vault_repo.get_by_uuid = AsyncMock(return_value=make_entry(1, is_default=True))
        mock_vault_repo.deactivate = AsyncMock(return_value=False)
        use_case = DeactivatePaymentMethod(mock_uow, mock_vault_repo)

        result = await use_case.execute("00000000-0000-4000-8000-000000000001")

        assert result.value is False
        mock_vault_repo.promote_successor.assert_not_called()
        mock_uow.rollback.assert_awaited_once()

    async def test_persistence_failure(self, mock_uow, mock_vault_repo):
        mock_vault_repo.get_by_uuid = AsyncMock(return_value=make_entry(1, is_default=True))
        mock_vault_repo.promote_successor = AsyncMock(side_effect=Exception("connection lost"))
        use_case = DeactivatePaymentMethod(mock_uow, mock_vault_repo)

        result = await use_case.execute("00000000-0000-4000-8000-000000000001")

        assert result.is_err()
        assert result.error.code == "DEACTIVATE_PAYMENT_METHOD_FAILED"
        mock_uow.rollback.assert_awaited_once()
        mock_uow.commit.assert_not_called()
