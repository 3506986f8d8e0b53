"""
Validation Service – caller-input checks run before any PDF is built.

Builders assume validated input and never re-check it. This module
names, per form type, the fields that must be non-empty so that no
blank official-looking document is produced, plus the format checks
(email, IBAN mod-97, BIC, Luhn, CVC).
"""

from __future__ import annotations

import logging
import re

from nexusforms.models.schemas import (
    CardPaymentData,
    CompanyIncorporationData,
    ExpenseReportData,
    FieldError,
    FormType,
    MileageLogbookData,
    RelayRequest,
    SepaMandateData,
)

logger = logging.getLogger(__name__)

REQUIRED = "This field is required"

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_BIC_RE = re.compile(r"^[A-Z]{4}[A-Z]{2}[A-Z0-9]{2}([A-Z0-9]{3})?$")
_IBAN_RE = re.compile(r"^[A-Z]{2}[0-9]{2}[A-Z0-9]{11,30}$")
_CVC_RE = re.compile(r"^[0-9]{3,4}$")
_CARD_RE = re.compile(r"^[0-9]{13,19}$")
_EXPIRY_RE = re.compile(r"^(0[1-9]|1[0-2])\s*/\s*([0-9]{2}|[0-9]{4})$")

# IBAN lengths for the SEPA countries the forms are filled from.
IBAN_LENGTHS = {
    "AT": 20, "BE": 16, "CH": 21, "CY": 28, "CZ": 24, "DE": 22, "DK": 18,
    "EE": 20, "ES": 24, "FI": 18, "FR": 27, "GB": 22, "GR": 27, "HR": 21,
    "HU": 28, "IE": 22, "IT": 27, "LT": 20, "LU": 20, "LV": 21, "MT": 31,
    "NL": 18, "NO": 15, "PL": 28, "PT": 25, "RO": 24, "SE": 24, "SI": 19,
    "SK": 24,
}

# Form types whose relay payload carries a PPS number.
PPS_FORM_TYPES = frozenset({FormType.EXPENSE_REPORT, FormType.MILEAGE_LOGBOOK})


# ---------------------------------------------------------------------------
# Format checks
# ---------------------------------------------------------------------------

def validate_email(value: str) -> bool:
    return bool(_EMAIL_RE.match(value.strip()))


def _compact(value: str) -> str:
    return re.sub(r"\s+", "", value).upper()


def validate_iban(value: str) -> bool:
    """ISO 13616 check: country length, then the mod-97 remainder must be 1."""
    iban = _compact(value)
    if not _IBAN_RE.match(iban):
        return False
    expected = IBAN_LENGTHS.get(iban[:2])
    if expected is not None and len(iban) != expected:
        return False
    rearranged = iban[4:] + iban[:4]
    digits = "".join(str(int(ch, 36)) for ch in rearranged)
    return int(digits) % 97 == 1


def validate_bic(value: str) -> bool:
    return bool(_BIC_RE.match(_compact(value)))


def luhn_check(number: str) -> bool:
    digits = re.sub(r"\s+", "", number)
    if not _CARD_RE.match(digits):
        return False
    total = 0
    for i, ch in enumerate(reversed(digits)):
        n = int(ch)
        if i % 2 == 1:
            n *= 2
            if n > 9:
                n -= 9
        total += n
    return total % 10 == 0


def validate_cvc(value: str) -> bool:
    return bool(_CVC_RE.match(value.strip()))


def validate_expiry(value: str) -> bool:
    return bool(_EXPIRY_RE.match(value.strip()))


def _is_number(value: str) -> bool:
    try:
        float(value)
    except ValueError:
        return False
    return True


# ---------------------------------------------------------------------------
# Per-form rules
# ---------------------------------------------------------------------------

class ValidationService:
    """Collects every FieldError for a form record (empty list = valid)."""

    def validate(self, data) -> list[FieldError]:
        form_type = FormType(data.form_type)
        if form_type is FormType.MILEAGE_LOGBOOK:
            errors = self._mileage(data)
        elif form_type is FormType.EXPENSE_REPORT:
            errors = self._expense(data)
        elif form_type is FormType.COMPANY_INCORPORATION:
            errors = self._incorporation(data)
        elif form_type is FormType.SEPA:
            errors = self._sepa(data)
        else:
            errors = self._card(data)
        if errors:
            logger.info("%s failed validation: %s", form_type.value, [e.field for e in errors])
        return errors

    @staticmethod
    def _required(errors: list[FieldError], obj, fields, prefix: str = "") -> None:
        for name in fields:
            if not str(getattr(obj, name) or "").strip():
                errors.append(FieldError(field=prefix + name, message=REQUIRED))

    @staticmethod
    def _email(errors: list[FieldError], field: str, value: str) -> None:
        if value.strip() and not validate_email(value):
            errors.append(FieldError(field=field, message="Invalid email address"))

    def _mileage(self, d: MileageLogbookData) -> list[FieldError]:
        errors: list[FieldError] = []
        self._required(errors, d, ("driver_name", "driver_email", "ppsn", "vehicle_registration"))
        self._email(errors, "driver_email", d.driver_email)
        if not any(t.date and t.from_ and t.to and t.business_km for t in d.trips):
            errors.append(FieldError(field="trips", message="At least one complete trip is required"))
        self._required(errors, d, ("signature", "signed_date"))
        return errors

    def _expense(self, d: ExpenseReportData) -> list[FieldError]:
        errors: list[FieldError] = []
        self._required(
            errors, d,
            ("name", "email", "pps", "trip_reason", "trip_date", "origin", "destination",
             "signature", "signed_date"),
        )
        self._email(errors, "email", d.email)
        for i, item in enumerate(d.items):
            if item.amount.strip() and not _is_number(item.amount):
                errors.append(FieldError(field=f"items.{i}.amount", message="Enter a numeric amount"))
        return errors

    def _incorporation(self, d: CompanyIncorporationData) -> list[FieldError]:
        errors: list[FieldError] = []
        self._required(errors, d.applicant, ("full_name", "email", "address", "phone"), "applicant.")
        self._email(errors, "applicant.email", d.applicant.email)
        self._required(
            errors, d.company,
            ("preferred_name", "alternative_name", "activities", "address", "eircode"), "company.",
        )
        for i, director in enumerate(d.directors):
            self._required(
                errors, director,
                ("full_name", "email", "address", "phone", "dob", "nationality", "pps", "profession"),
                f"directors.{i}.",
            )
        if not d.directors:
            errors.append(FieldError(field="directors", message="Please add at least one director."))
        if d.has_multiple_directors and len(d.directors) < 2:
            errors.append(FieldError(field="directors", message="Please add details for at least two directors."))

        if not d.owners:
            errors.append(FieldError(field="owners", message="Please add at least one company owner."))
        total = 0.0
        for i, owner in enumerate(d.owners):
            self._required(errors, owner, ("full_name", "nationality", "share_percentage"), f"owners.{i}.")
            share = owner.share_percentage.strip()
            if not share:
                continue
            if not _is_number(share) or not 0 < float(share) <= 100:
                errors.append(FieldError(
                    field=f"owners.{i}.share_percentage", message="Enter a percentage between 0 and 100",
                ))
                continue
            total += float(share)
        if d.owners and abs(total - 100) > 0.01:
            errors.append(FieldError(field="owners", message="Share percentages must add up to 100%."))

        if d.secretary is not None:
            self._required(
                errors, d.secretary,
                ("full_name", "dob", "address", "phone", "email", "nationality"), "secretary.",
            )
        if not d.share_capital.strip():
            errors.append(FieldError(field="share_capital", message="Please specify the desired share capital"))
        elif not _is_number(d.share_capital):
            errors.append(FieldError(field="share_capital", message="Please enter a valid numeric amount"))
        if not d.confirm_proceed:
            errors.append(FieldError(field="confirm_proceed", message="You must confirm before submitting"))
        return errors

    def _mandate_common(self, errors: list[FieldError], d) -> None:
        self._required(errors, d, ("name", "email"))
        self._email(errors, "email", d.email)
        if not d.consent:
            errors.append(FieldError(field="consent", message="Consent is required"))
        if not d.signature_image:
            errors.append(FieldError(field="signature_image", message="Please provide a signature"))

    def _sepa(self, d: SepaMandateData) -> list[FieldError]:
        errors: list[FieldError] = []
        self._mandate_common(errors, d)
        self._required(errors, d, ("iban",))
        if d.iban.strip() and not validate_iban(d.iban):
            errors.append(FieldError(field="iban", message="Invalid IBAN"))
        if d.bic.strip() and not validate_bic(d.bic):
            errors.append(FieldError(field="bic", message="Invalid BIC"))
        return errors

    def _card(self, d: CardPaymentData) -> list[FieldError]:
        errors: list[FieldError] = []
        self._mandate_common(errors, d)
        self._required(errors, d, ("card_number", "expiry", "cvc"))
        if d.card_number.strip() and not luhn_check(d.card_number):
            errors.append(FieldError(field="card_number", message="Invalid card number"))
        if d.expiry.strip() and not validate_expiry(d.expiry):
            errors.append(FieldError(field="expiry", message="Use MM/YY"))
        if d.cvc.strip() and not validate_cvc(d.cvc):
            errors.append(FieldError(field="cvc", message="Please enter a valid 3 or 4 digit CVC"))
        return errors


def validate_relay_request(request: RelayRequest) -> list[FieldError]:
    """The relay's own field rules, checked before posting."""
    errors = [
        FieldError(field=name, message=REQUIRED)
        for name in ("name", "email", "pdfData")
        if not getattr(request, name).strip()
    ]
    if request.type in PPS_FORM_TYPES and not request.pps.strip():
        errors.append(FieldError(field="pps", message=REQUIRED))
    return errors
