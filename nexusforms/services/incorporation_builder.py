"""
Incorporation Builder – the Company Incorporation request PDF.

Each director is drawn as one block (sub-heading plus a four-row table)
that is never split across a page boundary.
"""

from __future__ import annotations

from nexusforms.models.schemas import CompanyIncorporationData, Director, Secretary
from nexusforms.services.document_builder import (
    BODY_SIZE,
    GUTTER,
    KV_STYLE,
    DocumentBuilder,
    non_blank,
    percent,
)
from nexusforms.services.layout_service import RenderContext
from nexusforms.services.table_service import CellMatrix, TableStyle, table_height

PAIR_WIDTHS = (35, 55, 35, 55)
OWNER_WIDTHS = (10, 80, 55, 35)
OWNER_STYLE = TableStyle(theme="grid", font_size=BODY_SIZE, cell_padding=2)
DIRECTOR_TITLE_GAP = 3.0


class CompanyIncorporationBuilder(DocumentBuilder[CompanyIncorporationData]):
    title_key = "app.title.incorporation"

    def render(self, ctx: RenderContext, data: CompanyIncorporationData) -> None:
        t = self.t
        self.draw_header(ctx, t("app.title.incorporation"), t("app.subtitle.incorporation"))

        a = data.applicant
        self.kv_section(
            ctx,
            t("incorporation.applicant"),
            [
                [t("person.fullName") + ":", a.full_name, t("person.email") + ":", a.email],
                [t("person.phone") + ":", a.phone, t("person.address") + ":", a.address],
            ],
            PAIR_WIDTHS,
        )

        c = data.company
        self.kv_section(
            ctx,
            t("incorporation.company"),
            [
                [t("company.preferredName") + ":", c.preferred_name,
                 t("company.alternativeName") + ":", c.alternative_name],
                [t("company.address") + ":", c.address, t("company.eircode") + ":", c.eircode],
            ],
            PAIR_WIDTHS,
        )
        if c.activities.strip():
            self.heading(ctx, t("company.activities"), self.paragraph_height(ctx, c.activities))
            self.paragraph(ctx, c.activities)

        directors = non_blank(data.directors)
        if directors:
            self.heading(ctx, t("incorporation.directors"), self.director_height(ctx, directors[0]))
            for n, director in enumerate(directors, start=1):
                self.director_block(ctx, n, director)

        self._secretary(ctx, data.secretary)
        self._owners(ctx, data)

        self.kv_section(
            ctx,
            t("incorporation.shareCapital"),
            [[t("incorporation.shareCapital") + ":", f"€{data.share_capital}" if data.share_capital else ""]],
            (45, 60),
        )
        ctx.ensure_space(10)
        mark = t("common.yes") if data.confirm_proceed else t("common.no")
        ctx.draw_text(f"{t('incorporation.confirm')}: {mark}", ctx.left, ctx.y, size=BODY_SIZE, font="Helvetica-Bold")
        ctx.advance(GUTTER)

    # ------------------------------------------------------------------

    def _director_rows(self, d: Director) -> list[list[str]]:
        t = self.t
        return [
            [t("person.fullName") + ":", d.full_name, t("person.email") + ":", d.email],
            [t("person.phone") + ":", d.phone, t("person.dob") + ":", d.dob],
            [t("person.nationality") + ":", d.nationality, t("person.pps") + ":", d.pps],
            [t("person.address") + ":", d.address, t("person.profession") + ":", d.profession],
        ]

    def _director_matrix(self, d: Director) -> CellMatrix:
        return CellMatrix.of(self._director_rows(d), column_widths=PAIR_WIDTHS)

    def director_height(self, ctx: RenderContext, director: Director) -> float:
        """Sub-heading gap plus the director's table with every wrapped line counted."""
        return DIRECTOR_TITLE_GAP + table_height(ctx, self._director_matrix(director), KV_STYLE)

    def director_block(self, ctx: RenderContext, n: int, director: Director) -> None:
        # Whole block on one page: sub-heading and its table.
        ctx.ensure_space(self.director_height(ctx, director))
        ctx.draw_text(
            self.t("incorporation.director").format(n=n), ctx.left, ctx.y,
            size=10, font="Helvetica-Bold",
        )
        ctx.advance(DIRECTOR_TITLE_GAP)
        self.table(ctx, self._director_matrix(director), gutter=4)

    def _secretary(self, ctx: RenderContext, secretary: Secretary | None) -> None:
        t = self.t
        if secretary is None or not secretary.full_name.strip():
            self.heading(ctx, t("incorporation.secretary"), 10)
            ctx.draw_text(t("incorporation.secretary.none"), ctx.left, ctx.y, size=BODY_SIZE, font="Helvetica-Oblique")
            ctx.advance(GUTTER)
            return
        self.kv_section(
            ctx,
            t("incorporation.secretary"),
            [
                [t("person.fullName") + ":", secretary.full_name, t("person.email") + ":", secretary.email],
                [t("person.phone") + ":", secretary.phone, t("person.dob") + ":", secretary.dob],
                [t("person.nationality") + ":", secretary.nationality, t("person.address") + ":", secretary.address],
            ],
            PAIR_WIDTHS,
        )

    def _owners(self, ctx: RenderContext, data: CompanyIncorporationData) -> None:
        owners = non_blank(data.owners)
        if not owners:
            return
        t = self.t
        matrix = CellMatrix.of(
            [
                [str(i), o.full_name, o.nationality, percent(o.share_percentage)]
                for i, o in enumerate(owners, start=1)
            ],
            header=["#", t("person.fullName"), t("person.nationality"), t("owner.share")],
            column_widths=OWNER_WIDTHS,
        )
        self.table_section(ctx, t("incorporation.owners"), matrix, OWNER_STYLE)
