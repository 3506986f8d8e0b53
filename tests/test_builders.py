"""
Tests for the Document Builders and the PdfService dispatch point.
"""

import io
from datetime import date

import pytest
from PIL import Image
from pydantic import TypeAdapter
from pypdf import PdfReader

from nexusforms.models.schemas import (
    CardPaymentData,
    CompanyIncorporationData,
    Director,
    DocumentData,
    ExpenseReportData,
    FormType,
    MileageLogbookData,
    SepaMandateData,
)
from nexusforms.repository.asset_repository import AssetRepository
from nexusforms.services.document_builder import money, percent
from nexusforms.services.expense_builder import ITEM_STYLE, ITEM_WIDTHS, ExpenseReportBuilder
from nexusforms.services.i18n_service import get_translator
from nexusforms.services.incorporation_builder import CompanyIncorporationBuilder
from nexusforms.services.layout_service import CircleOp, ImageOp, RenderContext, TextOp, encode_png_data_url
from nexusforms.services.mandate_builder import CardPaymentBuilder, SepaMandateBuilder
from nexusforms.services.mileage_builder import (
    TRIP_COLUMNS,
    TRIP_STYLE,
    TRIP_WIDTHS,
    MileageLogbookBuilder,
    trip_rows,
)
from nexusforms.services.pdf_service import PdfService, download_filename, to_base64
from nexusforms.services.table_service import CellMatrix, row_height


def _png(size=(120, 40), color=(17, 24, 39, 255)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGBA", size, color).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def jane_doe():
    return MileageLogbookData.model_validate({
        "driver_name": "Jane Doe",
        "driver_email": "jane@example.ie",
        "ppsn": "1234567T",
        "vehicle_registration": "191-D-12345",
        "trips": [
            {"date": "2024-03-01", "from": "Dublin", "to": "Cork", "business_km": "40"},
            {"date": "", "from": "", "to": ""},
            {"date": "2024-03-02", "from": "Cork", "to": "Galway", "business_km": 20},
        ],
        "total_km_all": 100,
        "total_km_business": "60",
        "business_percent": "60.00",
        "signature": "Jane Doe",
        "signed_date": "2024-12-31",
    })


def _first_column_texts(doc, x=16.5, size=8):
    return [
        op.text
        for page in doc.pages
        for op in page.ops
        if isinstance(op, TextOp) and op.x == x and op.size == size
    ]


class TestFormatting:
    def test_money_blank_is_zero(self):
        assert money("") == "€0.00"

    def test_money_is_not_recomputed(self):
        assert money("12.5") == "€12.5"

    def test_percent(self):
        assert percent("60.00") == "60.00%"
        assert percent("") == ""


class TestTranslator:
    def test_spanish_lookup(self):
        assert get_translator("es")("trips.title") == "Viajes de Trabajo"

    def test_falls_back_to_english_then_key(self):
        t = get_translator("es")
        assert t("trip.col.no") == "#"
        assert t("no.such.label") == "no.such.label"

    def test_unsupported_language_is_english(self):
        assert get_translator("fr")("trips.title") == "Business Trips"


class TestMileageBuilder:
    def test_end_to_end_jane_doe(self, jane_doe):
        doc = MileageLogbookBuilder().build(jane_doe)
        texts = doc.texts()
        assert "Jane Doe" in texts
        # Trips table: header "#" plus exactly two populated rows.
        assert _first_column_texts(doc) == ["#", "1", "2"]
        assert "Dublin" in texts and "Galway" in texts
        # Totals rendered from the precomputed strings.
        assert "60" in texts
        assert "60.00%" in texts
        assert "100" in texts

    def test_blank_trips_are_filtered(self):
        data = MileageLogbookData(trips=[{"date": " ", "from": "", "to": ""}] * 5)
        assert trip_rows(data.trips) == []
        doc = MileageLogbookBuilder().build(data)
        assert _first_column_texts(doc) == []
        assert "Business Trips" in doc.texts()

    def test_one_populated_among_blanks(self):
        trips = [{"from": ""}] * 4 + [{"to": "Limerick"}]
        data = MileageLogbookData(trips=trips)
        rows = trip_rows(data.trips)
        assert len(rows) == 1
        assert rows[0][0] == "1"

    def test_tolls_formatted_as_money_only_when_present(self):
        data = MileageLogbookData(trips=[
            {"date": "d", "tolls_parking": "3.10"},
            {"date": "d"},
        ])
        rows = trip_rows(data.trips)
        assert rows[0][8] == "€3.10"
        assert rows[1][8] == ""

    def test_running_costs_default_to_zero(self, jane_doe):
        texts = MileageLogbookBuilder().build(jane_doe).texts()
        assert texts.count("€0.00") >= 7

    def test_long_logbook_paginates_with_numbers(self):
        trips = [
            {"date": f"2024-01-{i % 28 + 1:02d}", "from": f"Origin {i}", "to": "Office", "business_km": 10}
            for i in range(90)
        ]
        doc = MileageLogbookBuilder().build(MileageLogbookData(driver_name="Long", trips=trips))
        assert doc.page_count > 1
        first_column = _first_column_texts(doc)
        assert [t for t in first_column if t != "#"] == [str(i) for i in range(1, 91)]
        # Header row repeated on every page the trips table reaches.
        assert first_column.count("#") >= 2
        stamps = [
            op.text for page in doc.pages for op in page.ops
            if isinstance(op, TextOp) and op.x == 190
        ]
        assert stamps == [f"{i}/{doc.page_count}" for i in range(1, doc.page_count + 1)]

    def test_pdf_round_trip_page_numbers(self):
        trips = [{"date": "2024-02-01", "from": f"Stop {i}", "to": "HQ"} for i in range(80)]
        doc = MileageLogbookBuilder().build(MileageLogbookData(trips=trips))
        reader = PdfReader(io.BytesIO(doc.to_bytes()))
        total = len(reader.pages)
        assert total == doc.page_count
        for i, page in enumerate(reader.pages, start=1):
            assert f"{i}/{total}" in page.extract_text()

    def test_corrupt_logo_does_not_abort(self, jane_doe):
        doc = MileageLogbookBuilder(logo=b"\x89PNG broken").build(jane_doe)
        assert [w.code for w in doc.warnings] == ["image-decode"]
        assert "Business Mileage Logbook – Ireland" in doc.texts()
        assert doc.to_bytes().startswith(b"%PDF")

    def test_logo_drawn_top_right(self, jane_doe):
        doc = MileageLogbookBuilder(logo=_png((400, 120))).build(jane_doe)
        logo = next(op for op in doc.pages[0].ops if isinstance(op, ImageOp))
        assert (logo.x, logo.w, logo.h) == (155, 40, 12)

    def test_signature_image_embedded_in_fixed_box(self, jane_doe):
        jane_doe.signature_image = encode_png_data_url(_png())
        doc = MileageLogbookBuilder().build(jane_doe)
        images = [op for page in doc.pages for op in page.ops if isinstance(op, ImageOp)]
        assert len(images) == 1
        assert (images[0].w, images[0].h) == (66, 20)
        assert doc.warnings == []

    def test_bad_signature_is_a_warning(self, jane_doe):
        jane_doe.signature_image = "data:image/png;base64,AAAA"
        doc = MileageLogbookBuilder().build(jane_doe)
        assert [w.code for w in doc.warnings] == ["image-decode"]

    def test_missing_signed_date_renders_blank(self, jane_doe):
        jane_doe.signed_date = ""
        doc = MileageLogbookBuilder().build(jane_doe)
        assert doc.page_count >= 1

    def test_spanish_labels(self, jane_doe):
        doc = MileageLogbookBuilder(get_translator("es")).build(jane_doe)
        texts = doc.texts()
        assert "Libro de Kilometraje Laboral – Irlanda" in texts
        assert "Viajes de Trabajo" in texts


class TestExpenseBuilder:
    def test_sections_and_money(self):
        data = ExpenseReportData(name="Ana", pps="7654321A", tolls="4.20", trip_date="2024-06-01")
        texts = ExpenseReportBuilder().build(data).texts()
        assert "Business Expense Report" in texts
        assert "€4.20" in texts
        assert "€0.00" in texts
        assert "Ireland – Employee/Director, Tax Year 2024" in texts

    def test_notes_only_when_present(self):
        without = ExpenseReportBuilder().build(ExpenseReportData()).texts()
        assert "Notes" not in without
        with_notes = ExpenseReportBuilder().build(ExpenseReportData(notes="Client visit")).texts()
        assert "Notes" in with_notes
        assert "Client visit" in with_notes

    def test_item_rows_filtered(self):
        data = ExpenseReportData(items=[
            {"date": "2024-06-01", "category": "Meals", "description": "Lunch", "amount": "12"},
            {"category": "Meals"},
        ])
        doc = ExpenseReportBuilder().build(data)
        assert _first_column_texts(doc) == ["#", "1"]
        assert "€12" in doc.texts()


class TestIncorporationBuilder:
    @staticmethod
    def _director(n):
        return {"full_name": f"Director Person {n}", "email": f"d{n}@example.ie", "pps": f"{n}000000A"}

    def test_blank_directors_skipped(self):
        data = CompanyIncorporationData(directors=[self._director(1), {"full_name": ""}, self._director(2)])
        texts = CompanyIncorporationBuilder().build(data).texts()
        assert "Director 1" in texts and "Director 2" in texts
        assert "Director 3" not in texts

    def test_director_blocks_not_split(self):
        data = CompanyIncorporationData(directors=[self._director(n) for n in range(1, 13)])
        doc = CompanyIncorporationBuilder().build(data)
        assert doc.page_count > 1
        for page in doc.pages:
            texts = page.texts()
            for n in range(1, 13):
                if f"Director {n}" in texts:
                    assert f"Director Person {n}" in texts
                    assert f"{n}000000A" in texts

    def test_secretary_absent(self):
        texts = CompanyIncorporationBuilder().build(CompanyIncorporationData()).texts()
        assert "No secretary provided" in texts

    def test_owners_table_with_percent(self):
        data = CompanyIncorporationData(owners=[
            {"full_name": "Owner A", "nationality": "Irish", "share_percentage": "60"},
            {"full_name": "Owner B", "nationality": "Spanish", "share_percentage": "40"},
            {"full_name": ""},
        ])
        doc = CompanyIncorporationBuilder().build(data)
        texts = doc.texts()
        assert "60%" in texts and "40%" in texts
        assert "Owner A" in texts and "Owner B" in texts
        assert "Share %" in texts


class TestMandateBuilders:
    def test_card_layout(self):
        data = CardPaymentData(
            name="Sean", card_number="4242424242424242", payment_type="recurrent",
            signature_image=encode_png_data_url(_png()),
        )
        doc = CardPaymentBuilder().build(data)
        texts = doc.texts()
        assert "CARD PAYMENT" in texts
        assert "*Creditor Identifier: IE58ZZZ362641" in texts
        assert "4242424242424242" in texts
        filled = [op for op in doc.pages[0].ops if isinstance(op, CircleOp) and op.fill is not None]
        assert len(filled) == 1
        assert filled[0].x == 90
        image = next(op for op in doc.pages[0].ops if isinstance(op, ImageOp))
        assert (image.x, image.w, image.h) == (62, 96, 20)
        assert doc.page_count == 1

    def test_one_off_selected(self):
        doc = CardPaymentBuilder().build(CardPaymentData(payment_type="one-off"))
        filled = [op for op in doc.pages[0].ops if isinstance(op, CircleOp) and op.fill is not None]
        assert [c.x for c in filled] == [160]

    def test_sepa_layout(self):
        data = SepaMandateData(name="Aoife", iban="IE29AIBK93115212345678", bic="AIBKIE2D", unique_mandate_ref="M-1")
        doc = SepaMandateBuilder().build(data)
        texts = doc.texts()
        assert "SEPA DIRECT DEBIT MANDATE" in texts
        assert "IE29AIBK93115212345678" in texts
        assert "M-1" in texts
        assert doc.page_count == 1
        assert not any(isinstance(op, CircleOp) and op.fill is not None for op in doc.pages[0].ops)


def _start_offsets():
    """Every starting y from the top margin to just above the bottom limit, in 0.5 mm steps."""
    ctx = RenderContext()
    top, limit = ctx.cursor.margins.top, ctx.cursor.bottom_limit
    return [top + step * 0.5 for step in range(int((limit - top) * 2))]


def _table_first_column(page, x, size):
    return [op.text for op in page.ops if isinstance(op, TextOp) and op.x == x and op.size == size]


class TestKeepTogether:
    """Headings and blocks are sized from their wrapped rows, wherever they start."""

    TRIPS = [
        {"date": "2024-03-01", "from": "Dublin", "to": "Cork",
         "purpose": "quarterly client review meeting", "business_km": "40"},
    ] * 3

    def test_spanish_trip_header_wraps_to_two_lines(self):
        ctx = RenderContext()
        t = get_translator("es")
        header = [t(key) for key in TRIP_COLUMNS]
        height = row_height(ctx, header, TRIP_WIDTHS, TRIP_STYLE, header=True)
        assert height == pytest.approx(2 * ctx.line_height(TRIP_STYLE.font_size) + 2 * TRIP_STYLE.cell_padding)

    @pytest.mark.parametrize("language", ["en", "es"])
    def test_trips_heading_stays_with_header_and_first_row(self, language):
        builder = MileageLogbookBuilder(get_translator(language))
        title = builder.t("trips.title")
        trips = MileageLogbookData(trips=self.TRIPS).trips
        orphaned = []
        for start in _start_offsets():
            ctx = RenderContext()
            ctx.move_to(start)
            builder.trips_section(ctx, trips)
            page = next(p for p in ctx.pages if title in p.texts())
            if _table_first_column(page, 16.5, TRIP_STYLE.font_size)[:2] != ["#", "1"]:
                orphaned.append(start)
        assert orphaned == []

    def test_item_heading_stays_with_wrapped_first_row(self):
        builder = ExpenseReportBuilder()
        matrix = CellMatrix.of(
            [["1", "2024-06-01", "Accommodation",
              "Two nights at the conference hotel including breakfast and parking for the site visit",
              "€310.00"]],
            header=["#", "Date", "Category", "Description", "Amount"],
            column_widths=ITEM_WIDTHS,
        )
        orphaned = []
        for start in _start_offsets():
            ctx = RenderContext()
            ctx.move_to(start)
            builder.table_section(ctx, "Itemised Expenses", matrix, ITEM_STYLE)
            page = next(p for p in ctx.pages if "Itemised Expenses" in p.texts())
            if _table_first_column(page, 16.5, ITEM_STYLE.font_size) != ["#", "1"]:
                orphaned.append(start)
        assert orphaned == []

    def test_wrapped_director_block_is_never_split(self):
        director = Director(
            full_name="Siobhan Ni Bhriain",
            email="siobhan@example.ie",
            phone="0871234567",
            dob="1979-04-12",
            nationality="Irish",
            pps="7654321B",
            address="Apartment 14, The Old Distillery Building, Smithfield Village, Dublin 7, D07 XY12",
            profession="Chartered management accountant and non-executive board member",
        )
        builder = CompanyIncorporationBuilder()
        ctx = RenderContext()
        # The address and profession wrap, so the block is taller than four single-line rows.
        assert builder.director_height(ctx, director) > 3 + 4 * (ctx.line_height(9) + 4)

        split = []
        for start in _start_offsets():
            ctx = RenderContext()
            ctx.move_to(start)
            builder.director_block(ctx, 1, director)
            if sum(1 for page in ctx.pages if page.texts()) != 1:
                split.append(start)
        assert split == []


class TestPdfService:
    @pytest.mark.parametrize("payload", [
        {"form_type": "mileage-logbook"},
        {"form_type": "expense-report"},
        {"form_type": "company-incorporation"},
        {"form_type": "sepa"},
        {"form_type": "card"},
    ])
    def test_dispatches_every_form_type(self, payload):
        data = TypeAdapter(DocumentData).validate_python(payload)
        doc = PdfService().build(data)
        assert doc.page_count >= 1
        assert doc.to_bytes().startswith(b"%PDF")

    def test_unknown_form_type_rejected(self):
        with pytest.raises(ValueError):
            TypeAdapter(DocumentData).validate_python({"form_type": "aml"})

    def test_missing_logo_asset_is_reported(self, tmp_path, jane_doe):
        doc = PdfService(assets=AssetRepository(root=tmp_path)).build(jane_doe)
        assert doc.warnings[0].code == "image-missing"

    def test_logo_asset_loaded(self, tmp_path, jane_doe):
        (tmp_path / "logo.png").write_bytes(_png((400, 120)))
        doc = PdfService(assets=AssetRepository(root=tmp_path, logo_name="logo.png")).build(jane_doe)
        assert doc.warnings == []
        assert any(isinstance(op, ImageOp) for op in doc.pages[0].ops)

    def test_download_filename(self):
        assert download_filename(FormType.CARD, date(2024, 5, 1)) == "card-2024-05-01.pdf"
        assert download_filename("mileage-logbook", date(2024, 5, 1)) == "mileage-logbook-2024-05-01.pdf"

    def test_to_base64_strips_data_prefix(self):
        assert to_base64("data:application/pdf;base64,JVBERi0=") == "JVBERi0="
        assert to_base64(b"%PDF-") == "JVBERi0="
