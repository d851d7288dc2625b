"""SQLAlchemy implementation of PaymentVaultRepository

Maintains the single-default-per-customer invariant. The partial unique
index on (customer_id) WHERE is_default AND is_active is the final guard;
the methods below order their writes so that a single request never trips it.
"""

import logging
from datetime import date, datetime
from typing import Dict, List, Optional
from sqlalchemy import and_, func, or_, update
from sqlalchemy.exc import IntegrityError
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.payment_vault_repository import PaymentVaultRepository
from src.domain.payment_vault import PaymentVaultEntry, PaymentMethodType

logger = logging.getLogger(__name__)


class SqlAlchemyPaymentVaultRepository(PaymentVaultRepository):
    """
    SQLAlchemy implementation of PaymentVaultRepository

    Features:
    - Default election on insert settled by the partial unique index
    - Clear-others-then-set default reassignment within one transaction
    - Conditional deactivate followed by successor promotion
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, entry: PaymentVaultEntry) -> PaymentVaultEntry:
        """
        Persist a new entry and elect it default if the customer has none

        If a concurrent insert for the same customer already holds the
        default, the unique index rejects this row; it is then stored again
        as a non-default entry.

        Args:
            entry: PaymentVaultEntry to persist

        Returns:
            Created entry with generated ID
        """
        existing_default = await self.get_default_by_customer(entry.customer_id)
        entry.is_default = existing_default is None
        data = entry.model_dump(exclude={"id"})

        self.session.add(entry)
        try:
            await self.session.flush()
        except IntegrityError:
            if not data["is_default"]:
                raise
            await self.session.rollback()
            logger.info(
                f"Default already claimed for customer {entry.customer_id}, "
                f"storing vault entry {data['uuid']} as non-default"
            )
            data["is_default"] = False
            entry = PaymentVaultEntry(**data)
            self.session.add(entry)
            await self.session.flush()

        await self.session.refresh(entry)
        return entry

    async def get_by_uuid(self, entry_uuid: str) -> Optional[PaymentVaultEntry]:
        statement = (
            select(PaymentVaultEntry)
            .where(PaymentVaultEntry.uuid == entry_uuid)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(statement)
        return result.scalar_one_or_none()

    async def get_active_by_customer(self, customer_id: str) -> List[PaymentVaultEntry]:
        statement = (
            select(PaymentVaultEntry)
            .where(PaymentVaultEntry.customer_id == customer_id)
            .where(PaymentVaultEntry.is_active == True)  # noqa: E712
            .order_by(
                PaymentVaultEntry.is_default.desc(),
                PaymentVaultEntry.created_at.desc(),
                PaymentVaultEntry.id.desc(),
            )
        )
        result = await self.session.execute(statement)
        return list(result.scalars().all())

    async def get_default_by_customer(self, customer_id: str) -> Optional[PaymentVaultEntry]:
        statement = (
            select(PaymentVaultEntry)
            .where(PaymentVaultEntry.customer_id == customer_id)
            .where(PaymentVaultEntry.is_active == True)  # noqa: E712
            .where(PaymentVaultEntry.is_default == True)  # noqa: E712
        )
        result = await self.session.execute(statement)
        return result.scalars().first()

    def _expired_clause(self, today: date):
        current_year = f"{today.year:04d}"
        current_month = f"{today.month:02d}"
        # expiry_month is zero-padded and expiry_year four digits, so string
        # comparison orders the same as numeric comparison
        return and_(
            PaymentVaultEntry.is_active == True,  # noqa: E712
            PaymentVaultEntry.payment_method_type == PaymentMethodType.CREDIT_CARD,
            PaymentVaultEntry.expiry_month.is_not(None),
            PaymentVaultEntry.expiry_year.is_not(None),
            or_(
                PaymentVaultEntry.expiry_year < current_year,
                and_(
                    PaymentVaultEntry.expiry_year == current_year,
                    PaymentVaultEntry.expiry_month < current_month,
                ),
            ),
        )

    async def get_expired(self, today: date) -> List[PaymentVaultEntry]:
        statement = (
            select(PaymentVaultEntry)
            .where(self._expired_clause(today))
            .order_by(PaymentVaultEntry.id.asc())
        )
        result = await self.session.execute(statement)
        return list(result.scalars().all())

    async def set_default(self, entry: PaymentVaultEntry, now: datetime) -> bool:
        """
        Clear every other default for the customer, then set the target

        Both statements run in the caller's transaction; the caller commits
        on True and rolls back on False.

        Returns:
            True if the target was promoted
        """
        await self.session.execute(
            update(PaymentVaultEntry)
            .where(PaymentVaultEntry.customer_id == entry.customer_id)
            .where(PaymentVaultEntry.id != entry.id)
            .where(PaymentVaultEntry.is_default == True)  # noqa: E712
            .values(is_default=False, updated_at=now)
        )

        result = await self.session.execute(
            update(PaymentVaultEntry)
            .where(PaymentVaultEntry.id == entry.id)
            .where(PaymentVaultEntry.is_active == True)  # noqa: E712
            .values(is_default=True, updated_at=now)
        )
        return result.rowcount == 1

    async def deactivate(self, entry: PaymentVaultEntry, now: datetime) -> bool:
        """
        Apply the entry's deactivate transition through a conditional update

        Returns:
            True if the entry was active and is now deactivated
        """
        entry.deactivate(now)
        result = await self.session.execute(
            update(PaymentVaultEntry)
            .where(PaymentVaultEntry.id == entry.id)
            .where(PaymentVaultEntry.is_active == True)  # noqa: E712
            .values(
                is_active=entry.is_active,
                is_default=entry.is_default,
                updated_at=entry.updated_at,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def promote_successor(
        self, customer_id: str, now: datetime
    ) -> Optional[PaymentVaultEntry]:
        """
        Promote the newest remaining active entry when the customer has no default

        Returns:
            The promoted entry, or None
        """
        if await self.get_default_by_customer(customer_id) is not None:
            return None

        candidate_result = await self.session.execute(
            select(PaymentVaultEntry)
            .where(PaymentVaultEntry.customer_id == customer_id)
            .where(PaymentVaultEntry.is_active == True)  # noqa: E712
            .order_by(PaymentVaultEntry.created_at.desc(), PaymentVaultEntry.id.desc())
            .limit(1)
        )
        candidate = candidate_result.scalars().first()
        if candidate is None:
            return None

        result = await self.session.execute(
            update(PaymentVaultEntry)
            .where(PaymentVaultEntry.id == candidate.id)
            .where(PaymentVaultEntry.is_active == True)  # noqa: E712
            .values(is_default=True, updated_at=now)
        )
        if result.rowcount != 1:
            return None
        return candidate

    async def mark_used(self, entry_id: int, used_at: datetime) -> None:
        await self.session.execute(
            update(PaymentVaultEntry)
            .where(PaymentVaultEntry.id == entry_id)
            .values(last_used_at=used_at, updated_at=used_at)
        )

    async def get_statistics(self, today: date) -> Dict[str, int]:
        total = await self.session.execute(select(func.count(PaymentVaultEntry.id)))

        active = await self.session.execute(
            select(func.count(PaymentVaultEntry.id))
            .where(PaymentVaultEntry.is_active == True)  # noqa: E712
        )

        expired = await self.session.execute(
            select(func.count(PaymentVaultEntry.id)).where(self._expired_clause(today))
        )

        return {
            "total": int(total.scalar_one()),
            "active": int(active.scalar_one()),
            "expired": int(expired.scalar_one()),
        }
