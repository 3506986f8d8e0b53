"""
Tests for the Validation Service — format checks and per-form required fields.
"""

import pytest

from nexusforms.models.schemas import (
    CardPaymentData,
    CompanyIncorporationData,
    ExpenseReportData,
    FormType,
    MileageLogbookData,
    RelayRequest,
    SepaMandateData,
)
from nexusforms.services.validation_service import (
    ValidationService,
    luhn_check,
    validate_bic,
    validate_cvc,
    validate_email,
    validate_expiry,
    validate_iban,
    validate_relay_request,
)

VALID_IBAN = "IE29AIBK93115212345678"
SIGNATURE = "data:image/png;base64,iVBORw0KGgo="


@pytest.fixture
def svc():
    return ValidationService()


def _fields(errors):
    return [e.field for e in errors]


class TestIban:
    def test_valid(self):
        assert validate_iban(VALID_IBAN)

    def test_spaces_and_case_ignored(self):
        assert validate_iban("ie29 aibk 9311 5212 3456 78")

    def test_every_single_digit_change_is_rejected(self):
        for i, ch in enumerate(VALID_IBAN):
            if not ch.isdigit():
                continue
            for d in "0123456789":
                if d == ch:
                    continue
                mutated = VALID_IBAN[:i] + d + VALID_IBAN[i + 1:]
                assert not validate_iban(mutated), mutated

    def test_wrong_country_length(self):
        assert not validate_iban(VALID_IBAN + "0")

    def test_garbage(self):
        assert not validate_iban("not an iban")
        assert not validate_iban("")


class TestFormatChecks:
    def test_luhn(self):
        assert luhn_check("4242424242424242")
        assert luhn_check("4242 4242 4242 4242")
        assert not luhn_check("4242424242424241")
        assert not luhn_check("1234")

    def test_bic(self):
        assert validate_bic("AIBKIE2D")
        assert validate_bic("AIBKIE2DXXX")
        assert not validate_bic("AIB")

    def test_cvc(self):
        assert validate_cvc("123")
        assert validate_cvc("1234")
        assert not validate_cvc("12")
        assert not validate_cvc("12a")

    def test_expiry(self):
        assert validate_expiry("08/27")
        assert not validate_expiry("13/27")
        assert not validate_expiry("0827")

    def test_email(self):
        assert validate_email("jane@example.ie")
        assert not validate_email("jane@example")
        assert not validate_email("jane example.ie")


class TestMileageRules:
    def test_empty_logbook_reports_every_required_field(self, svc):
        fields = _fields(svc.validate(MileageLogbookData()))
        for name in ("driver_name", "driver_email", "ppsn", "vehicle_registration",
                     "trips", "signature", "signed_date"):
            assert name in fields

    def test_complete_logbook_is_valid(self, svc):
        data = MileageLogbookData.model_validate({
            "driver_name": "Jane Doe", "driver_email": "jane@example.ie", "ppsn": "1234567T",
            "vehicle_registration": "191-D-12345",
            "trips": [{"date": "2024-03-01", "from": "Dublin", "to": "Cork", "business_km": 40}],
            "signature": "Jane Doe", "signed_date": "2024-12-31",
        })
        assert svc.validate(data) == []

    def test_incomplete_trip_does_not_count(self, svc):
        data = MileageLogbookData(trips=[{"date": "2024-03-01", "from": "Dublin", "to": "Cork"}])
        assert "trips" in _fields(svc.validate(data))


class TestExpenseRules:
    def test_non_numeric_item_amount(self, svc):
        data = ExpenseReportData(items=[{"description": "Taxi", "amount": "twelve"}])
        assert "items.0.amount" in _fields(svc.validate(data))

    def test_invalid_email(self, svc):
        errors = svc.validate(ExpenseReportData(email="nope"))
        assert any(e.field == "email" and e.message == "Invalid email address" for e in errors)


class TestIncorporationRules:
    @staticmethod
    def _complete(**overrides):
        person = {
            "full_name": "A Director", "email": "a@example.ie", "address": "1 Main St",
            "phone": "0851234567", "dob": "1980-01-01", "nationality": "Irish",
            "pps": "1234567T", "profession": "Engineer",
        }
        payload = {
            "applicant": {"full_name": "App", "email": "app@example.ie", "address": "X", "phone": "1"},
            "company": {
                "preferred_name": "Acme Ltd", "alternative_name": "Acme Two Ltd",
                "activities": "Consulting", "address": "Dublin", "eircode": "D02 XY45",
            },
            "directors": [person],
            "owners": [{"full_name": "Owner", "nationality": "Irish", "share_percentage": "100"}],
            "share_capital": "100",
            "confirm_proceed": True,
        }
        payload.update(overrides)
        return CompanyIncorporationData.model_validate(payload)

    def test_complete_request_is_valid(self, svc):
        assert svc.validate(self._complete()) == []

    def test_multiple_directors_needs_two(self, svc):
        errors = svc.validate(self._complete(has_multiple_directors=True))
        assert "directors" in _fields(errors)

    def test_shares_must_total_100(self, svc):
        owners = [
            {"full_name": "A", "nationality": "Irish", "share_percentage": "60"},
            {"full_name": "B", "nationality": "Irish", "share_percentage": "30"},
        ]
        assert "owners" in _fields(svc.validate(self._complete(owners=owners)))

    def test_share_out_of_range(self, svc):
        owners = [{"full_name": "A", "nationality": "Irish", "share_percentage": "120"}]
        assert "owners.0.share_percentage" in _fields(svc.validate(self._complete(owners=owners)))

    def test_confirmation_required(self, svc):
        assert "confirm_proceed" in _fields(svc.validate(self._complete(confirm_proceed=False)))

    def test_secretary_fields_required_when_present(self, svc):
        errors = svc.validate(self._complete(secretary={"full_name": "Sec"}))
        assert "secretary.email" in _fields(errors)


class TestMandateRules:
    def test_valid_sepa(self, svc):
        data = SepaMandateData(
            name="Aoife", email="aoife@example.ie", iban=VALID_IBAN, bic="AIBKIE2D",
            consent=True, signature_image=SIGNATURE,
        )
        assert svc.validate(data) == []

    def test_sepa_bad_iban(self, svc):
        data = SepaMandateData(
            name="Aoife", email="aoife@example.ie", iban="IE29AIBK93115212345679",
            consent=True, signature_image=SIGNATURE,
        )
        assert _fields(svc.validate(data)) == ["iban"]

    def test_mandate_needs_consent_and_signature(self, svc):
        fields = _fields(svc.validate(SepaMandateData(name="A", email="a@b.ie", iban=VALID_IBAN)))
        assert fields == ["consent", "signature_image"]

    def test_card_checks(self, svc):
        data = CardPaymentData(
            name="Sean", email="sean@example.ie", card_number="4242424242424241",
            expiry="2027-08", cvc="12", consent=True, signature_image=SIGNATURE,
        )
        assert _fields(svc.validate(data)) == ["card_number", "expiry", "cvc"]

    def test_valid_card(self, svc):
        data = CardPaymentData(
            name="Sean", email="sean@example.ie", card_number="4242424242424242",
            expiry="08/27", cvc="123", consent=True, signature_image=SIGNATURE,
        )
        assert svc.validate(data) == []


class TestRelayRequestRules:
    def test_pps_required_for_mileage(self):
        req = RelayRequest(name="Jane", email="j@example.ie", pdfData="JVBERi0=", type=FormType.MILEAGE_LOGBOOK)
        assert _fields(validate_relay_request(req)) == ["pps"]

    @pytest.mark.parametrize("form_type", [FormType.SEPA, FormType.CARD, FormType.COMPANY_INCORPORATION])
    def test_pps_exempt_types(self, form_type):
        req = RelayRequest(name="Jane", email="j@example.ie", pdfData="JVBERi0=", type=form_type)
        assert validate_relay_request(req) == []

    def test_always_required(self):
        req = RelayRequest(name=" ", email="", pdfData="", pps="123", type=FormType.EXPENSE_REPORT)
        assert _fields(validate_relay_request(req)) == ["name", "email", "pdfData"]
