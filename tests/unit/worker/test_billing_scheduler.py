"""Unit tests for BillingSchedulerWorker

Tests cover:
- Worker initialization with configuration
- run_once execution and result summary
- Scheduler disabled scenario
- Use case error handling
- Shutdown and cleanup
"""

import pytest
from datetime import datetime
from unittest.mock import AsyncMock, MagicMock, patch

from src.app.services.payment_gateway import GatewayResultStatus
from src.app.use_cases.subscriptions import BillingResultDTO, ProcessDueBillingResultDTO
from src.worker.billing_scheduler import BillingSchedulerWorker

AS_OF = datetime(2025, 3, 1, 0, 0, 0)


@pytest.fixture
def mock_http_client():
    """Mock gateway HTTP client"""
    client = MagicMock()
    client.aclose = AsyncMock()
    return client


def mock_session_factory():
    session = MagicMock()
    session.__aenter__ = AsyncMock(return_value=session)
    session.__aexit__ = AsyncMock()
    return MagicMock(return_value=session)


def make_summary() -> ProcessDueBillingResultDTO:
    return ProcessDueBillingResultDTO(
        as_of=AS_OF,
        total_due=2,
        succeeded=1,
        declined=1,
        failed=0,
        execution_time_ms=42,
        results=[
            BillingResultDTO(
                subscription_uuid="5b1f7f7e-3a52-4a3e-9a43-2f0c7d1e9b11",
                customer_id="cust_a",
                status=GatewayResultStatus.SUCCESS,
                transaction_id="7412983311",
                billing_cycle=1,
            ),
            BillingResultDTO(
                subscription_uuid="9e0c2d44-7f1b-4b8a-8d55-0c6f9a1e2b33",
                customer_id="cust_b",
                status=GatewayResultStatus.DECLINED,
                billing_cycle=0,
                code="200",
                message="DECLINE",
            ),
        ],
    )


class TestBillingSchedulerWorkerInit:
    """Test worker initialization"""

    @patch("src.worker.billing_scheduler.ApplicationConfig")
    @patch("src.worker.billing_scheduler.create_async_engine")
    def test_initializes_with_default_config(
        self, mock_create_engine, mock_app_config, mock_http_client
    ):
        """
        Given: No custom configuration provided
        When: Worker is initialized
        Then: Uses DB_URI from ApplicationConfig
        """
        # Arrange
        mock_app_config.DB_URI = "postgresql+asyncpg://default@localhost/db"
        mock_create_engine.return_value = MagicMock()

        # Act
        worker = BillingSchedulerWorker(http_client=mock_http_client)

        # Assert
        assert worker.db_uri == "postgresql+asyncpg://default@localhost/db"
        assert worker.http_client is mock_http_client
        mock_create_engine.assert_called_once()

    @patch("src.worker.billing_scheduler.ApplicationConfig")
    @patch("src.worker.billing_scheduler.create_async_engine")
    def test_initializes_with_custom_db_uri(
        self, mock_create_engine, mock_app_config, mock_http_client
    ):
        mock_app_config.DB_URI = "postgresql+asyncpg://default@localhost/db"
        mock_create_engine.return_value = MagicMock()

        worker = BillingSchedulerWorker(
            db_uri="postgresql+asyncpg://custom@localhost/custom_db",
            http_client=mock_http_client,
        )

        assert worker.db_uri == "postgresql+asyncpg://custom@localhost/custom_db"


@pytest.mark.asyncio
class TestBillingSchedulerWorkerRunOnce:
    """Test run_once execution"""

    @patch("src.worker.billing_scheduler.ApplicationConfig")
    @patch("src.worker.billing_scheduler.ProcessDueBilling")
    @patch("src.worker.billing_scheduler.create_payment_gateway")
    @patch("src.worker.billing_scheduler.SqlAlchemyUnitOfWork")
    @patch("src.worker.billing_scheduler.SqlAlchemySubscriptionRepository")
    @patch("src.worker.billing_scheduler.create_async_engine")
    @patch("src.worker.billing_scheduler.sessionmaker")
    async def test_run_once_bills_due_subscriptions(
        self,
        mock_sessionmaker,
        mock_create_engine,
        mock_subscription_repo_class,
        mock_uow_class,
        mock_create_gateway,
        mock_use_case_class,
        mock_app_config,
        mock_http_client,
    ):
        """
        Given: The scheduler is enabled
        When: run_once is called with a cut-off
        Then: Executes due billing with the shared HTTP client and returns the summary
        """
        # Arrange
        mock_app_config.DB_URI = "postgresql+asyncpg://test@localhost/db"
        mock_app_config.BILLING_SCHEDULER_ENABLED = True
        mock_sessionmaker.return_value = mock_session_factory()
        mock_create_engine.return_value = MagicMock()

        mock_result = MagicMock()
        mock_result.is_err.return_value = False
        mock_result.value = make_summary()
        mock_use_case = MagicMock()
        mock_use_case.execute = AsyncMock(return_value=mock_result)
        mock_use_case_class.return_value = mock_use_case

        # Act
        worker = BillingSchedulerWorker(http_client=mock_http_client)
        summary = await worker.run_once(as_of=AS_OF)

        # Assert
        assert summary.total_due == 2
        assert summary.succeeded == 1
        assert mock_use_case.execute.call_args.kwargs["as_of"] == AS_OF
        assert mock_create_gateway.call_args.kwargs["http_client"] is mock_http_client

    @patch("src.worker.billing_scheduler.ApplicationConfig")
    @patch("src.worker.billing_scheduler.ProcessDueBilling")
    @patch("src.worker.billing_scheduler.create_async_engine")
    async def test_run_once_skips_when_disabled(
        self, mock_create_engine, mock_use_case_class, mock_app_config, mock_http_client
    ):
        """
        Given: The scheduler is disabled
        When: run_once is called
        Then: Returns None without billing
        """
        mock_app_config.DB_URI = "postgresql+asyncpg://test@localhost/db"
        mock_app_config.BILLING_SCHEDULER_ENABLED = False
        mock_create_engine.return_value = MagicMock()

        worker = BillingSchedulerWorker(http_client=mock_http_client)
        summary = await worker.run_once()

        assert summary is None
        mock_use_case_class.assert_not_called()

    @patch("src.worker.billing_scheduler.ApplicationConfig")
    @patch("src.worker.billing_scheduler.ProcessDueBilling")
    @patch("src.worker.billing_scheduler.create_payment_gateway")
    @patch("src.worker.billing_scheduler.SqlAlchemyUnitOfWork")
    @patch("src.worker.billing_scheduler.SqlAlchemySubscriptionRepository")
    @patch("src.worker.billing_scheduler.create_async_engine")
    @patch("src.worker.billing_scheduler.sessionmaker")
    async def test_run_once_handles_use_case_error(
        self,
        mock_sessionmaker,
        mock_create_engine,
        mock_subscription_repo_class,
        mock_uow_class,
        mock_create_gateway,
        mock_use_case_class,
        mock_app_config,
        mock_http_client,
    ):
        """
        Given: The due-billing query fails
        When: run_once is called
        Then: Returns None and logs the error
        """
        mock_app_config.DB_URI = "postgresql+asyncpg://test@localhost/db"
        mock_app_config.BILLING_SCHEDULER_ENABLED = True
        mock_sessionmaker.return_value = mock_session_factory()
        mock_create_engine.return_value = MagicMock()

        mock_error = MagicMock()
        mock_error.message = "Failed to load subscriptions due for billing"
        mock_result = MagicMock()
        mock_result.is_err.return_value = True
        mock_result.error = mock_error
        mock_use_case = MagicMock()
        mock_use_case.execute = AsyncMock(return_value=mock_result)
        mock_use_case_class.return_value = mock_use_case

        worker = BillingSchedulerWorker(http_client=mock_http_client)
        summary = await worker.run_once()

        assert summary is None


@pytest.mark.asyncio
class TestBillingSchedulerWorkerShutdown:
    """Test shutdown"""

    @patch("src.worker.billing_scheduler.ApplicationConfig")
    @patch("src.worker.billing_scheduler.create_async_engine")
    async def test_shutdown_closes_client_and_engine(
        self, mock_create_engine, mock_app_config, mock_http_client
    ):
        mock_app_config.DB_URI = "postgresql+asyncpg://test@localhost/db"
        mock_engine = MagicMock()
        mock_engine.dispose = AsyncMock()
        mock_create_engine.return_value = mock_engine

        worker = BillingSchedulerWorker(http_client=mock_http_client)
        await worker.shutdown()

        mock_http_client.aclose.assert_awaited_once()
        mock_engine.dispose.assert_awaited_once()
