"""
Schemas – Pydantic models shared across the Nexus Forms Engine.

One record per form type (tagged by ``form_type``), the relay wire
payloads, and the value types the renderer hands back to callers
(render warnings, two-phase submission results).
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class FormType(str, Enum):
    EXPENSE_REPORT = "expense-report"
    MILEAGE_LOGBOOK = "mileage-logbook"
    SEPA = "sepa"
    CARD = "card"
    COMPANY_INCORPORATION = "company-incorporation"


class _FormModel(BaseModel):
    """Base for form records: numbers typed into text inputs stay strings."""

    model_config = ConfigDict(coerce_numbers_to_str=True, populate_by_name=True)


# ---------------------------------------------------------------------------
# Mileage logbook
# ---------------------------------------------------------------------------

class TripRow(_FormModel):
    date: str = ""
    from_: str = Field("", alias="from")
    to: str = ""
    purpose: str = "inter-workplace"
    odo_start: str = ""
    odo_end: str = ""
    business_km: str = ""
    tolls_parking: str = ""
    notes: str = ""

    def is_blank(self) -> bool:
        return not (self.date.strip() or self.from_.strip() or self.to.strip())


class MileageLogbookData(_FormModel):
    form_type: Literal["mileage-logbook"] = "mileage-logbook"

    driver_name: str = ""
    driver_email: str = ""
    ppsn: str = ""
    vehicle_registration: str = ""
    vehicle_make_model: str = ""
    purchase_date: str = ""
    co2_g_km: str = ""
    engine_size: str = ""
    fuel_type: str = "petrol"

    trips: list[TripRow] = Field(default_factory=list)

    total_km_all: str = ""
    total_km_business: str = ""
    business_percent: str = ""

    fuel_eur: str = ""
    insurance_eur: str = ""
    motor_tax_eur: str = ""
    repairs_maintenance_eur: str = ""
    nct_testing_eur: str = ""
    other_desc: str = ""
    other_eur: str = ""

    car_cost_eur: str = ""
    purchase_date_ca: str = ""
    co2_band: str = ""

    signature: str = ""
    signature_image: Optional[str] = None
    signed_date: str = ""
    tax_year: str = "2024"


# ---------------------------------------------------------------------------
# Expense report
# ---------------------------------------------------------------------------

class ExpenseLine(_FormModel):
    date: str = ""
    category: str = ""
    description: str = ""
    amount: str = ""

    def is_blank(self) -> bool:
        return not (self.date.strip() or self.description.strip() or self.amount.strip())


class ExpenseReportData(_FormModel):
    form_type: Literal["expense-report"] = "expense-report"

    name: str = ""
    email: str = ""
    pps: str = ""
    trip_reason: str = ""
    trip_date: str = ""
    origin: str = ""
    destination: str = ""

    license_plate: str = ""
    make_model: str = ""
    fuel_type: str = "gasolina"
    co2_g_km: str = ""

    start_km: str = ""
    end_km: str = ""
    business_km: str = ""

    tolls: str = ""
    parking: str = ""
    fuel: str = ""
    meals: str = ""
    accommodation: str = ""
    items: list[ExpenseLine] = Field(default_factory=list)

    notes: str = ""
    signature: str = ""
    signature_image: Optional[str] = None
    signed_date: str = ""


# ---------------------------------------------------------------------------
# Company incorporation
# ---------------------------------------------------------------------------

class Applicant(_FormModel):
    full_name: str = ""
    email: str = ""
    address: str = ""
    phone: str = ""


class CompanyDetails(_FormModel):
    preferred_name: str = ""
    alternative_name: str = ""
    activities: str = ""
    address: str = ""
    eircode: str = ""


class Director(_FormModel):
    full_name: str = ""
    email: str = ""
    address: str = ""
    phone: str = ""
    dob: str = ""
    nationality: str = ""
    pps: str = ""
    profession: str = ""

    def is_blank(self) -> bool:
        return not self.full_name.strip()


class Secretary(_FormModel):
    full_name: str = ""
    dob: str = ""
    address: str = ""
    phone: str = ""
    email: str = ""
    nationality: str = ""


class Owner(_FormModel):
    full_name: str = ""
    nationality: str = ""
    share_percentage: str = ""

    def is_blank(self) -> bool:
        return not self.full_name.strip()


class CompanyIncorporationData(_FormModel):
    form_type: Literal["company-incorporation"] = "company-incorporation"

    applicant: Applicant = Field(default_factory=Applicant)
    company: CompanyDetails = Field(default_factory=CompanyDetails)
    directors: list[Director] = Field(default_factory=list)
    has_multiple_directors: bool = False
    secretary: Optional[Secretary] = None
    owners: list[Owner] = Field(default_factory=list)
    share_capital: str = "100"
    confirm_proceed: bool = False


# ---------------------------------------------------------------------------
# Payment mandates
# ---------------------------------------------------------------------------

PaymentType = Literal["recurrent", "one-off", ""]


class MandateBase(_FormModel):
    name: str = ""
    email: str = ""
    address: str = ""
    city: str = ""
    postcode: str = ""
    country: str = ""
    payment_type: PaymentType = ""
    signature_date: str = ""
    signature_image: Optional[str] = None
    consent: bool = False


class SepaMandateData(MandateBase):
    form_type: Literal["sepa"] = "sepa"

    iban: str = ""
    bic: str = ""
    creditor_id: str = "IE58ZZZ362641"
    unique_mandate_ref: str = ""


class CardPaymentData(MandateBase):
    form_type: Literal["card"] = "card"

    card_number: str = ""
    expiry: str = ""
    cvc: str = ""


FormRecord = Union[
    MileageLogbookData,
    ExpenseReportData,
    CompanyIncorporationData,
    SepaMandateData,
    CardPaymentData,
]

DocumentData = Annotated[FormRecord, Field(discriminator="form_type")]


# ---------------------------------------------------------------------------
# Rendering results
# ---------------------------------------------------------------------------

class RenderWarning(BaseModel):
    """A non-fatal defect met while laying out a document."""
    code: str
    message: str
    page: int


class FieldError(BaseModel):
    field: str
    message: str


# ---------------------------------------------------------------------------
# Email relay
# ---------------------------------------------------------------------------

class RelayRequest(BaseModel):
    name: str
    email: str
    pps: str = ""
    pdfData: str
    type: FormType
    meta: Optional[dict] = None


class PrimaryOutcome(BaseModel):
    """Admin-copy delivery: the compliance-critical half of a submission."""
    ok: bool
    admin_email_id: Optional[str] = None
    error: Optional[str] = None
    status_code: Optional[int] = None
    retryable: bool = False


class CustomerOutcome(BaseModel):
    """Customer-copy delivery; a failure here is a soft partial failure."""
    sent: bool = False
    email_id: Optional[str] = None
    error: Optional[str] = None


class SubmissionResult(BaseModel):
    primary: PrimaryOutcome
    secondary: CustomerOutcome = Field(default_factory=CustomerOutcome)

    @property
    def partial_failure(self) -> bool:
        return self.primary.ok and not self.secondary.sent


class SignatureStrokes(BaseModel):
    strokes: list[list[tuple[float, float]]] = Field(default_factory=list)
    width: int = 600
    height: int = 200
    device_pixel_ratio: float = 1.0
    scale: Optional[float] = None
