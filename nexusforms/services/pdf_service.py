"""
PDF Service – selects the builder for a form and serialises the result.

``PdfService.build`` is the single dispatch point from a DocumentData
record to its Document Builder. The module also carries the two terminal
actions on a finished document: the download filename and the base64
payload for the email relay.
"""

from __future__ import annotations

import base64
import logging
from datetime import date
from typing import Optional, Union

from nexusforms.models.schemas import FormRecord, FormType, RenderWarning
from nexusforms.repository.asset_repository import AssetRepository
from nexusforms.services.document_builder import DocumentBuilder
from nexusforms.services.expense_builder import ExpenseReportBuilder
from nexusforms.services.i18n_service import Translate, get_translator
from nexusforms.services.incorporation_builder import CompanyIncorporationBuilder
from nexusforms.services.layout_service import PdfDocument
from nexusforms.services.mandate_builder import CardPaymentBuilder, SepaMandateBuilder
from nexusforms.services.mileage_builder import MileageLogbookBuilder

logger = logging.getLogger(__name__)

_BUILDERS: dict[FormType, type[DocumentBuilder]] = {
    FormType.MILEAGE_LOGBOOK: MileageLogbookBuilder,
    FormType.EXPENSE_REPORT: ExpenseReportBuilder,
    FormType.COMPANY_INCORPORATION: CompanyIncorporationBuilder,
    FormType.SEPA: SepaMandateBuilder,
    FormType.CARD: CardPaymentBuilder,
}


class PdfService:
    """Builds the PDF for any supported form type."""

    def __init__(
        self,
        assets: Optional[AssetRepository] = None,
        translate: Optional[Translate] = None,
    ) -> None:
        self._assets = assets
        self._translate = translate

    def build(self, data: FormRecord, translate: Optional[Translate] = None) -> PdfDocument:
        form_type = FormType(data.form_type)
        builder_cls = _BUILDERS[form_type]
        logo = self._assets.load_logo() if self._assets is not None else None
        builder = builder_cls(translate or self._translate or get_translator(), logo=logo)

        doc = builder.build(data)
        if self._assets is not None and logo is None:
            doc.warnings.insert(0, RenderWarning(
                code="image-missing",
                message=f"logo: asset {self._assets.logo_name!r} not found",
                page=1,
            ))
        logger.info("Rendered %s PDF (%d pages)", form_type.value, doc.page_count)
        return doc

    def render_bytes(self, data: FormRecord, translate: Optional[Translate] = None) -> tuple[bytes, PdfDocument]:
        doc = self.build(data, translate)
        return doc.to_bytes(), doc


# ---------------------------------------------------------------------------
# Terminal actions
# ---------------------------------------------------------------------------

def download_filename(form_type: Union[FormType, str], today: Optional[date] = None) -> str:
    """``{form-type}-{YYYY-MM-DD}.pdf``."""
    value = form_type.value if isinstance(form_type, FormType) else FormType(form_type).value
    return f"{value}-{(today or date.today()).isoformat()}.pdf"


def to_base64(pdf: Union[bytes, str]) -> str:
    """Base64 text for the relay; any ``data:...;base64,`` prefix is stripped."""
    if isinstance(pdf, (bytes, bytearray)):
        return base64.b64encode(bytes(pdf)).decode("ascii")
    text = pdf.strip()
    if text.startswith("data:") and "," in text:
        text = text.split(",", 1)[1]
    return text
