"""SQLAlchemy Payment Transaction Repository Implementation

Implements payment transaction persistence using SQLAlchemy async session.
"""

from typing import List
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.payment_transaction_repository import PaymentTransactionRepository
from src.domain.payment_transaction import PaymentTransaction


class SqlAlchemyPaymentTransactionRepository(PaymentTransactionRepository):
    """
    SQLAlchemy implementation of PaymentTransactionRepository

    Append-only: records are created, never updated.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, transaction: PaymentTransaction) -> PaymentTransaction:
        """
        Create a new payment transaction record

        Args:
            transaction: PaymentTransaction to persist

        Returns:
            Created PaymentTransaction with generated ID
        """
        self.session.add(transaction)
        await self.session.flush()
        await self.session.refresh(transaction)
        return transaction

    async def get_by_transaction_id(self, transaction_id: str) -> List[PaymentTransaction]:
        statement = (
            select(PaymentTransaction)
            .where(PaymentTransaction.transaction_id == transaction_id)
            .order_by(PaymentTransaction.created_at.desc())
        )
        result = await self.session.execute(statement)
        return list(result.scalars().all())

    async def list_recent(self, limit: int = 50, offset: int = 0) -> List[PaymentTransaction]:
        statement = (
            select(PaymentTransaction)
            .order_by(PaymentTransaction.created_at.desc(), PaymentTransaction.id.desc())
            .limit(limit)
            .offset(offset)
        )
        result = await self.session.execute(statement)
        return list(result.scalars().all())
