"""
Mileage Builder – the Business Mileage Logbook PDF.

Sections, in order: header, driver & vehicle, business trips (grid table
with a repeated header on continuation pages), annual totals, running
costs, capital allowances, declaration and signature.
"""

from __future__ import annotations

from nexusforms.models.schemas import MileageLogbookData, TripRow
from nexusforms.services.document_builder import (
    BODY_SIZE,
    GUTTER,
    DocumentBuilder,
    money,
    non_blank,
    percent,
)
from nexusforms.services.layout_service import RenderContext
from nexusforms.services.table_service import CellMatrix, TableStyle

TRIP_WIDTHS = (7, 19, 22, 22, 24, 16, 16, 16, 16, 22)
TRIP_STYLE = TableStyle(theme="grid", font_size=8, cell_padding=1.5)

TRIP_COLUMNS = (
    "trip.col.no", "trip.col.date", "trip.col.from", "trip.col.to", "trip.col.purpose",
    "trip.col.odoStart", "trip.col.odoEnd", "trip.col.businessKm", "trip.col.tolls", "trip.col.notes",
)


def trip_rows(trips: list[TripRow]) -> list[list[str]]:
    """Table rows for the populated trips, numbered after filtering."""
    return [
        [
            str(i),
            trip.date,
            trip.from_,
            trip.to,
            trip.purpose,
            trip.odo_start,
            trip.odo_end,
            trip.business_km,
            f"€{trip.tolls_parking}" if trip.tolls_parking.strip() else "",
            trip.notes,
        ]
        for i, trip in enumerate(non_blank(trips), start=1)
    ]


class MileageLogbookBuilder(DocumentBuilder[MileageLogbookData]):
    title_key = "mileage.pdf.title"

    def render(self, ctx: RenderContext, data: MileageLogbookData) -> None:
        t = self.t
        self.draw_header(
            ctx, t("mileage.pdf.title"), t("mileage.pdf.subtitle").format(year=data.tax_year)
        )

        self.kv_section(
            ctx,
            t("driver.section.title"),
            [
                [t("driver.name") + ":", data.driver_name, t("driver.ppsn") + ":", data.ppsn],
                [t("vehicle.registration") + ":", data.vehicle_registration,
                 t("vehicle.makeModel") + ":", data.vehicle_make_model],
                [t("vehicle.purchaseDate") + ":", data.purchase_date, t("vehicle.co2") + ":", data.co2_g_km],
                [t("vehicle.engineSize") + ":", data.engine_size, t("vehicle.fuelType") + ":", data.fuel_type],
            ],
            (40, 50, 35, 55),
        )

        self.trips_section(ctx, data.trips)

        self.kv_section(
            ctx,
            t("totals.title"),
            [[
                t("totals.totalKmAll") + ":", data.total_km_all,
                t("totals.totalKmBusiness") + ":", data.total_km_business,
                t("totals.businessPercent") + ":", percent(data.business_percent),
            ]],
            (35, 25, 38, 25, 25, 25),
        )

        self.kv_section(
            ctx,
            t("runningCosts.title"),
            [
                [t("runningCosts.fuel") + ":", money(data.fuel_eur),
                 t("runningCosts.insurance") + ":", money(data.insurance_eur)],
                [t("runningCosts.motorTax") + ":", money(data.motor_tax_eur),
                 t("runningCosts.repairsMaintenance") + ":", money(data.repairs_maintenance_eur)],
                [t("runningCosts.nctTesting") + ":", money(data.nct_testing_eur),
                 (data.other_desc.strip() or t("runningCosts.other")) + ":", money(data.other_eur)],
            ],
            (45, 45, 45, 45),
        )

        self.kv_section(
            ctx,
            t("capitalAllowances.title"),
            [[
                t("capitalAllowances.carCost") + ":", money(data.car_cost_eur),
                t("capitalAllowances.purchaseDate") + ":", data.purchase_date_ca,
                t("capitalAllowances.co2Band") + ":", data.co2_band,
            ]],
            (25, 35, 30, 30, 22, 25),
        )

        declaration = t("mileage.declaration")
        self.heading(
            ctx,
            t("declaration.title"),
            self.paragraph_height(ctx, declaration, indent=5) + GUTTER + 30,
        )
        self.paragraph(ctx, declaration, size=BODY_SIZE, font="Helvetica-Oblique", indent=5)
        self.signature_block(ctx, data.signature, data.signed_date, data.signature_image)

    def trips_section(self, ctx: RenderContext, trips: list[TripRow]) -> None:
        rows = trip_rows(trips)
        if not rows:
            self.heading(ctx, self.t("trips.title"))
            ctx.advance(5)
            return
        matrix = CellMatrix.of(
            rows,
            header=[self.t(key) for key in TRIP_COLUMNS],
            column_widths=TRIP_WIDTHS,
        )
        self.table_section(ctx, self.t("trips.title"), matrix, TRIP_STYLE)
