"""NMI Payment Gateway

PaymentGateway implementation for the NMI three-step XML API.

Response handling:
- result 1: success, recorded as a PaymentTransaction before returning
- result 2: declined
- anything else, or an unparseable body: error
"""

import logging
import uuid
import xml.etree.ElementTree as ET
from decimal import Decimal
from typing import Any, Dict, Optional
import httpx
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from src.adapter.repositories.payment_transaction_repository import SqlAlchemyPaymentTransactionRepository
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.repositories.payment_transaction_repository import PaymentTransactionRepository
from src.app.services.payment_gateway import PaymentGateway, GatewayResult
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.validation_service import ValidationService
from src.domain.exceptions import (
    GatewayCommunicationError,
    TransactionRecordError,
    ValidationError,
)
from src.domain.payment_transaction import PaymentTransaction, PaymentStatus

logger = logging.getLogger(__name__)

NMI_THREE_STEP_URL = "https://secure.nmi.com/api/v2/three-step"

RESULT_APPROVED = "1"
RESULT_DECLINED = "2"


def _format_amount(amount: Decimal) -> str:
    return str(Decimal(str(amount)).quantize(Decimal("0.01")))


class NmiPaymentGateway(PaymentGateway):
    """
    NMI three-step gateway client

    Features:
    - XML request building with billing/shipping sub-elements
    - Bounded request timeout (default 30s)
    - Transport failures raised as GatewayCommunicationError
    - Successful charges and refunds committed to the transaction ledger
      before the success result is returned

    The API key, payment tokens and raw response bodies are never logged.
    """

    def __init__(
        self,
        api_key: str,
        transaction_repo: PaymentTransactionRepository,
        uow: UnitOfWork,
        gateway_url: str = NMI_THREE_STEP_URL,
        timeout: float = 30.0,
        http_client: Optional[httpx.AsyncClient] = None,
        ip_address: str = "127.0.0.1",
        validation_service: Optional[ValidationService] = None,
    ):
        """
        Initialize the gateway client

        Args:
            api_key: NMI security key
            transaction_repo: Ledger for successful responses
            uow: Unit of work used to commit ledger records
            gateway_url: Three-step endpoint
            timeout: Request timeout in seconds
            http_client: Shared client (a short-lived client is opened per request otherwise)
            ip_address: Customer IP sent with interactive sales
            validation_service: Input validator
        """
        self.api_key = api_key
        self.transaction_repo = transaction_repo
        self.uow = uow
        self.gateway_url = gateway_url
        self.timeout = timeout
        self.http_client = http_client
        self.ip_address = ip_address
        self.validator = validation_service or ValidationService()

    async def initialize_charge(
        self,
        amount: Decimal,
        currency: str = "USD",
        redirect_url: Optional[str] = None,
        billing_info: Optional[Dict[str, str]] = None,
        shipping_info: Optional[Dict[str, str]] = None,
    ) -> GatewayResult:
        errors = self.validator.validate_payment_data({"amount": amount, "currency": currency})
        if not redirect_url:
            errors["redirect_url"] = ["Redirect URL is required"]
        self.validator.ensure_valid(errors)

        sale = self._new_request("sale")
        self._append(sale, "redirect-url", redirect_url)
        self._append(sale, "amount", _format_amount(amount))
        self._append(sale, "ip-address", self.ip_address)
        self._append(sale, "currency", currency)
        self._append(sale, "order-id", self._order_id())
        self._append(sale, "order-description", "Payment Gateway Order")
        self._append(sale, "tax-amount", "0.00")
        self._append(sale, "shipping-amount", "0.00")
        self._append_section(sale, "billing", billing_info)
        self._append_section(sale, "shipping", shipping_info)

        response = await self._send(sale)
        result = self._classify(response, "Step 1")
        if result is not None:
            return result

        return GatewayResult.success(
            form_url=response.findtext("form-url"),
            amount=Decimal(str(amount)),
            currency=currency,
        )

    async def complete_charge(self, token_id: str) -> GatewayResult:
        if not token_id:
            raise ValidationError({"token_id": ["Token ID is required"]})

        action = self._new_request("complete-action")
        self._append(action, "token-id", token_id)

        response = await self._send(action)
        result = self._classify(response, "Payment")
        if result is not None:
            return result

        transaction_id = response.findtext("transaction-id")
        amount = self._parse_amount(response.findtext("amount"))
        if not transaction_id or amount is None:
            return self._malformed("Payment")

        currency = response.findtext("currency") or "USD"
        card_number = response.findtext("billing/cc-number") or ""
        last4 = card_number[-4:] or None

        await self._record(
            PaymentTransaction(
                transaction_id=transaction_id,
                amount=amount,
                currency_code=currency,
                payment_status=PaymentStatus.APPROVED,
                last4_digits=last4,
                used_token=response.findtext("token-id") or token_id,
            )
        )
        logger.info(f"Payment successful: transaction {transaction_id}")

        return GatewayResult.success(
            transaction_id=transaction_id,
            amount=amount,
            currency=currency,
            masked_card_last4=last4,
        )

    async def refund(self, original_transaction_id: str, amount: Decimal) -> GatewayResult:
        errors: Dict[str, list] = {}
        transaction_errors = self.validator.validate_transaction_id(original_transaction_id)
        if transaction_errors:
            errors["original_transaction_id"] = transaction_errors
        amount_value = self._parse_amount(amount)
        if amount_value is None or amount_value <= 0:
            errors["amount"] = ["Refund amount must be positive"]
        self.validator.ensure_valid(errors)

        refund = self._new_request("refund")
        self._append(refund, "transaction-id", original_transaction_id)
        self._append(refund, "amount", _format_amount(amount_value))

        response = await self._send(refund)
        result = self._classify(response, "Refund")
        if result is not None:
            return result

        transaction_id = response.findtext("transaction-id")
        if not transaction_id:
            return self._malformed("Refund")

        status = await self._refund_status(original_transaction_id, amount_value)

        await self._record(
            PaymentTransaction(
                transaction_id=transaction_id,
                amount=amount_value,
                currency_code=response.findtext("currency") or "USD",
                payment_status=status,
                original_transaction_id=original_transaction_id,
            )
        )
        logger.info(
            f"Refund successful: transaction {transaction_id} "
            f"(original {original_transaction_id}, amount {amount_value})"
        )

        return GatewayResult.success(transaction_id=transaction_id, amount=amount_value)

    async def charge_customer(
        self,
        customer_ref: str,
        amount: Decimal,
        currency: str = "USD",
        metadata: Optional[Dict[str, Any]] = None,
    ) -> GatewayResult:
        metadata = metadata or {}
        errors = self.validator.validate_payment_data({"amount": amount, "currency": currency})
        if not customer_ref:
            errors["customer_ref"] = ["Customer reference is required"]
        self.validator.ensure_valid(errors)

        amount_value = Decimal(str(amount))

        sale = self._new_request("sale")
        self._append(sale, "customer-vault-id", customer_ref)
        if metadata.get("payment_method_token"):
            self._append(sale, "billing-id", metadata["payment_method_token"])
        self._append(sale, "amount", _format_amount(amount_value))
        self._append(sale, "currency", currency)
        self._append(sale, "order-id", self._order_id())
        description = self._order_description(metadata)
        if description:
            self._append(sale, "order-description", description)

        response = await self._send(sale)
        result = self._classify(response, f"Rebilling for customer {customer_ref}")
        if result is not None:
            return result

        transaction_id = response.findtext("transaction-id")
        if not transaction_id:
            return self._malformed(f"Rebilling for customer {customer_ref}")

        await self._record(
            PaymentTransaction(
                transaction_id=transaction_id,
                amount=amount_value,
                currency_code=currency,
                payment_status=PaymentStatus.APPROVED,
                # Customer vault responses do not expose card details
                last4_digits="****",
                customer_reference=customer_ref,
            )
        )
        logger.info(
            f"Rebilling successful: customer {customer_ref}, "
            f"transaction {transaction_id}, amount {amount_value} {currency}"
        )

        return GatewayResult.success(
            transaction_id=transaction_id,
            amount=amount_value,
            currency=currency,
        )

    def _new_request(self, tag: str) -> ET.Element:
        root = ET.Element(tag)
        self._append(root, "api-key", self.api_key)
        return root

    def _append(self, parent: ET.Element, name: str, value: Any) -> None:
        child = ET.SubElement(parent, name)
        child.text = "" if value is None else str(value)

    def _append_section(
        self, parent: ET.Element, name: str, fields: Optional[Dict[str, str]]
    ) -> None:
        if not fields:
            return
        section = ET.SubElement(parent, name)
        for key, value in fields.items():
            self._append(section, key, value)

    def _order_id(self) -> str:
        return f"ORD-{uuid.uuid4().hex[:13]}"

    def _order_description(self, metadata: Dict[str, Any]) -> Optional[str]:
        if "subscription_id" not in metadata and "billing_cycle" not in metadata:
            return None
        description = "Subscription billing"
        if "subscription_id" in metadata:
            description += f" - ID: {metadata['subscription_id']}"
        if "billing_cycle" in metadata:
            description += f" - Cycle: {metadata['billing_cycle']}"
        return description

    def _parse_amount(self, value: Any) -> Optional[Decimal]:
        if value is None or value == "":
            return None
        try:
            return Decimal(str(value))
        except ArithmeticError:
            return None

    async def _send(self, request: ET.Element) -> Optional[ET.Element]:
        """
        POST an XML request and parse the response

        Returns:
            Parsed response root, or None if the body is not valid XML

        Raises:
            GatewayCommunicationError: connection error, timeout or non-2xx status
        """
        body = ET.tostring(request, encoding="utf-8", xml_declaration=True)
        headers = {"Content-Type": "text/xml"}

        try:
            if self.http_client is not None:
                response = await self.http_client.post(
                    self.gateway_url, content=body, headers=headers, timeout=self.timeout
                )
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(self.gateway_url, content=body, headers=headers)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Gateway communication failed for <{request.tag}> request: {e}")
            raise GatewayCommunicationError(
                f"Gateway communication failed: {e}",
                context={"request": request.tag},
                cause=e,
            )

        try:
            return ET.fromstring(response.content)
        except ET.ParseError as e:
            logger.error(f"Unparseable gateway response for <{request.tag}> request: {e}")
            return None

    def _classify(self, response: Optional[ET.Element], label: str) -> Optional[GatewayResult]:
        """
        Map a non-approved response to a declined or error result

        Returns:
            None when the processor approved the request
        """
        if response is None:
            return GatewayResult.error(message="Unparseable gateway response")

        result = (response.findtext("result") or "").strip()
        code = response.findtext("result-code")
        message = response.findtext("result-text")

        if result == RESULT_APPROVED:
            return None

        if result == RESULT_DECLINED:
            logger.warning(f"{label} declined: {message} (code {code})")
            return GatewayResult.declined(message=message or "Payment declined", code=code)

        logger.error(f"{label} failed: result {result or 'missing'}, {message} (code {code})")
        return GatewayResult.error(message=message or "Gateway error", code=code)

    def _malformed(self, label: str) -> GatewayResult:
        """Error result for an approval missing the fields needed to record it"""
        logger.error(f"{label} approved without a transaction id or amount")
        return GatewayResult.error(message="Malformed gateway response")

    async def _refund_status(self, original_transaction_id: str, amount: Decimal) -> PaymentStatus:
        originals = await self.transaction_repo.get_by_transaction_id(original_transaction_id)
        for original in originals:
            if original.payment_status == PaymentStatus.APPROVED and amount < original.amount:
                return PaymentStatus.PARTIALLY_REFUNDED
        return PaymentStatus.REFUNDED

    async def _record(self, transaction: PaymentTransaction) -> PaymentTransaction:
        """
        Commit a ledger record for an approved response

        Raises:
            TransactionRecordError: the record could not be persisted
        """
        try:
            created = await self.transaction_repo.create(transaction)
            await self.uow.commit()
            return created
        except Exception as e:
            await self.uow.rollback()
            logger.critical(
                f"Gateway approved transaction {transaction.transaction_id} "
                f"but the local record failed: {e}"
            )
            raise TransactionRecordError(
                "Gateway approved the request but the transaction record could not be saved",
                context={"transaction_id": transaction.transaction_id},
                cause=e,
            )


def create_payment_gateway(
    session: AsyncSession,
    http_client: Optional[httpx.AsyncClient] = None,
) -> PaymentGateway:
    """
    Factory function to create the configured payment gateway

    Args:
        session: Session used for the transaction ledger
        http_client: Optional shared HTTP client

    Returns:
        Configured PaymentGateway
    """
    return NmiPaymentGateway(
        api_key=ApplicationConfig.NMI_API_KEY,
        transaction_repo=SqlAlchemyPaymentTransactionRepository(session),
        uow=SqlAlchemyUnitOfWork(session),
        gateway_url=ApplicationConfig.NMI_GATEWAY_URL,
        timeout=ApplicationConfig.GATEWAY_TIMEOUT_SECONDS,
        http_client=http_client,
        ip_address=ApplicationConfig.GATEWAY_IP_ADDRESS,
        validation_service=ValidationService(ApplicationConfig.SUBSCRIPTION_MAX_AMOUNT),
    )
