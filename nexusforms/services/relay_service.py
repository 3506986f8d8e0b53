"""
Relay Service – posts a finished PDF to the email relay.

The relay sends the admin copy first; that send decides success or
failure of the whole call. The customer copy is best-effort and comes
back as a nested outcome. Both halves are returned as values
(``SubmissionResult``), never raised, so callers can surface a partial
failure without treating it as an error.

The client does not retry. Timeouts, connection errors and 5xx
responses are flagged ``retryable`` for the calling flow to decide.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Optional

import httpx

from nexusforms.models.schemas import (
    CardPaymentData,
    CompanyIncorporationData,
    CustomerOutcome,
    ExpenseReportData,
    FormType,
    MileageLogbookData,
    PrimaryOutcome,
    RelayRequest,
    SepaMandateData,
    SubmissionResult,
)

logger = logging.getLogger(__name__)

DEFAULT_RELAY_URL = "http://localhost:3000/api/send-email"
DEFAULT_TIMEOUT = 15.0


def mask_email(email: str) -> str:
    """``ab***@domain`` for logs."""
    if not email or "@" not in email:
        return "***"
    local, domain = email.split("@", 1)
    if len(local) <= 2:
        return f"***@{domain}"
    return f"{local[:2]}***@{domain}"


def mask_card(number: str) -> str:
    digits = "".join(ch for ch in number if ch.isdigit())
    if len(digits) < 4:
        return ""
    return "•••• " + digits[-4:]


# ---------------------------------------------------------------------------
# Payload
# ---------------------------------------------------------------------------

def build_relay_request(data, pdf_b64: str) -> RelayRequest:
    """Derive the submitter (and card/SEPA meta) for a form record."""
    meta: Optional[dict[str, Any]] = None

    if isinstance(data, MileageLogbookData):
        name, email, pps = data.driver_name, data.driver_email, data.ppsn
    elif isinstance(data, ExpenseReportData):
        name, email, pps = data.name, data.email, data.pps
    elif isinstance(data, CompanyIncorporationData):
        name, email, pps = data.applicant.full_name, data.applicant.email, ""
    elif isinstance(data, SepaMandateData):
        name, email, pps = data.name, data.email, ""
        meta = {
            "paymentType": data.payment_type,
            "mandateReference": data.unique_mandate_ref,
            "creditorId": data.creditor_id,
            "signatureDate": data.signature_date,
        }
    elif isinstance(data, CardPaymentData):
        name, email, pps = data.name, data.email, ""
        meta = {
            "cardNumber": mask_card(data.card_number),
            "expiry": data.expiry,
            "paymentType": data.payment_type,
            "signatureDate": data.signature_date,
        }
    else:
        raise TypeError(f"unsupported form record: {type(data).__name__}")

    return RelayRequest(
        name=name, email=email, pps=pps, pdfData=pdf_b64, type=FormType(data.form_type), meta=meta,
    )


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------

class RelayClient:
    """Async client for the ``/api/send-email`` relay endpoint."""

    def __init__(
        self,
        url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.url = url or os.getenv("RELAY_URL", DEFAULT_RELAY_URL)
        self.timeout = timeout if timeout is not None else float(os.getenv("RELAY_TIMEOUT", str(DEFAULT_TIMEOUT)))
        self._transport = transport

    async def send(self, request: RelayRequest) -> SubmissionResult:
        payload = request.model_dump(mode="json", exclude_none=True)
        logger.info(
            "Relay send: type=%s email=%s pdfDataLength=%d",
            request.type.value, mask_email(request.email), len(request.pdfData),
        )
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.post(self.url, json=payload)
        except httpx.TimeoutException as e:
            logger.warning("Relay timed out after %.1fs: %s", self.timeout, e)
            return SubmissionResult(primary=PrimaryOutcome(ok=False, error="relay timed out", retryable=True))
        except httpx.TransportError as e:
            logger.warning("Relay unreachable: %s", e)
            return SubmissionResult(primary=PrimaryOutcome(ok=False, error=f"relay unreachable: {e}", retryable=True))

        body = _json_body(resp)
        if not resp.is_success:
            error = str(body.get("error") or resp.reason_phrase or "relay error")
            logger.warning("Relay rejected submission: %d %s", resp.status_code, error)
            return SubmissionResult(primary=PrimaryOutcome(
                ok=False,
                error=error,
                status_code=resp.status_code,
                retryable=resp.status_code >= 500,
            ))

        primary = PrimaryOutcome(
            ok=bool(body.get("success", True)),
            admin_email_id=_opt_str(body.get("adminEmailId")),
            status_code=resp.status_code,
        )
        secondary = _customer_outcome(body.get("customer"))
        if primary.ok and not secondary.sent:
            logger.warning("Customer copy not sent to %s: %s", mask_email(request.email), secondary.error)
        return SubmissionResult(primary=primary, secondary=secondary)


def _json_body(resp: httpx.Response) -> dict[str, Any]:
    try:
        body = resp.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


def _opt_str(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def _customer_outcome(raw: Any) -> CustomerOutcome:
    if not isinstance(raw, dict):
        return CustomerOutcome(sent=False, error="relay did not report the customer copy")
    error = raw.get("error")
    if error is not None and not isinstance(error, str):
        error = json.dumps(error)
    return CustomerOutcome(
        sent=bool(raw.get("sent")),
        email_id=_opt_str(raw.get("emailId")),
        error=error,
    )
