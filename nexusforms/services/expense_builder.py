"""
Expense Builder – the Business Expense Report PDF.
"""

from __future__ import annotations

from datetime import date

from nexusforms.models.schemas import ExpenseReportData
from nexusforms.services.document_builder import GUTTER, DocumentBuilder, money, non_blank
from nexusforms.services.layout_service import RenderContext
from nexusforms.services.table_service import CellMatrix, TableStyle

ITEM_WIDTHS = (8, 25, 35, 82, 30)
ITEM_STYLE = TableStyle(theme="grid", font_size=8, cell_padding=1.5)


class ExpenseReportBuilder(DocumentBuilder[ExpenseReportData]):
    title_key = "app.title.expense"

    def render(self, ctx: RenderContext, data: ExpenseReportData) -> None:
        t = self.t
        self.draw_header(ctx, t("app.title.expense"), t("app.subtitle").format(year=_year(data)))

        self.kv_section(
            ctx,
            t("expense.personal.info"),
            [
                [t("form.name") + ":", data.name, t("form.pps") + ":", data.pps],
                [t("form.email") + ":", data.email, "", ""],
                [t("expense.reason") + ":", data.trip_reason, "", ""],
                [t("expense.trip.date") + ":", data.trip_date, t("expense.origin") + ":", data.origin],
                [t("expense.destination") + ":", data.destination, "", ""],
            ],
            (40, 50, 35, 55),
        )
        self.kv_section(
            ctx,
            t("expense.vehicle.info"),
            [
                [t("expense.license"), data.license_plate, t("expense.make.model"), data.make_model],
                [t("expense.fuel.type"), data.fuel_type, t("expense.co2"), data.co2_g_km],
            ],
            (40, 50, 35, 55),
        )
        self.kv_section(
            ctx,
            t("expense.mileage.reading"),
            [
                [t("expense.start.km"), _km(data.start_km), t("expense.end.km"), _km(data.end_km)],
                [t("expense.business.km"), _km(data.business_km), "", ""],
            ],
            (60, 40, 45, 35),
        )
        self.kv_section(
            ctx,
            t("expense.expenses"),
            [
                [t("expense.tolls"), money(data.tolls), t("expense.parking"), money(data.parking)],
                [t("expense.fuel"), money(data.fuel), t("expense.meals"), money(data.meals)],
                [t("expense.accommodation"), money(data.accommodation), "", ""],
            ],
            (35, 45, 35, 45),
        )

        items = non_blank(data.items)
        if items:
            matrix = CellMatrix.of(
                [
                    [str(i), item.date, item.category, item.description, money(item.amount)]
                    for i, item in enumerate(items, start=1)
                ],
                header=["#", t("form.date"), t("expense.col.category"),
                        t("expense.col.description"), t("expense.col.amount")],
                column_widths=ITEM_WIDTHS,
            )
            self.table_section(ctx, t("expense.items"), matrix, ITEM_STYLE)

        if data.notes.strip():
            self.heading(ctx, t("form.notes"), self.paragraph_height(ctx, data.notes))
            self.paragraph(ctx, data.notes)

        declaration = t("expense.declaration")
        self.heading(ctx, t("declaration.title"), self.paragraph_height(ctx, declaration) + GUTTER + 30)
        self.paragraph(ctx, declaration)
        self.signature_block(ctx, data.signature, data.signed_date, data.signature_image)


def _km(value: str) -> str:
    return f"{value} km" if value.strip() else ""


def _year(data: ExpenseReportData) -> str:
    # Trip dates arrive as ISO strings from date inputs.
    head = data.trip_date[:4]
    return head if head.isdigit() else str(date.today().year)
