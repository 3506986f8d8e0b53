"""
Mandate Builder – SEPA direct-debit and card-payment mandate PDFs.

Both mandates share one boxed-form layout: a filled title band with the
logo, the creditor-identifier band, the wrapped legal text, labelled
boxes for the customer fields, the creditor information box, the
payment-type radio pair, the date of signing and the signature box.
Only the account rows differ between the two.
"""

from __future__ import annotations

from nexusforms.models.schemas import CardPaymentData, SepaMandateData, MandateBase
from nexusforms.services.document_builder import DocumentBuilder
from nexusforms.services.layout_service import RGB, RenderContext

CARD_CREDITOR_ID = "IE58ZZZ362641"

BAND_FILL: RGB = (228, 224, 206)
CREDITOR_FILL: RGB = (219, 234, 254)

LABEL_X = 12.0
BOX_X = 60.0
FIELD_H = 8.0
LEGAL_SIZE = 8.0
LEGAL_STEP = 4.0
SIG_W, SIG_H = 100.0, 24.0
SIG_INSET = 2.0


class _MandateBuilder(DocumentBuilder[MandateBase]):
    """Shared boxed layout; subclasses supply the account rows."""

    band_key = ""
    legal_key = "mandate.legal.card"

    def creditor_id(self, data: MandateBase) -> str:
        return CARD_CREDITOR_ID

    def account_rows(self, ctx: RenderContext, data: MandateBase) -> None:
        raise NotImplementedError

    def render(self, ctx: RenderContext, data: MandateBase) -> None:
        t = self.t
        pw = ctx.cursor.page_width

        # Title band and logo
        ctx.draw_rect(10, 10, pw - 20, 18, stroke=False, fill=BAND_FILL)
        ctx.draw_text(t(self.band_key), pw / 2, 22, size=14, font="Helvetica-Bold", align="center")
        if self.logo is not None:
            ctx.draw_image(self.logo, pw - 12 - 30, 12, 30, 14, label="logo")

        # Creditor identifier band
        ctx.draw_rect(10, 30, pw - 20, 20, stroke=False, fill=CREDITOR_FILL)
        ctx.draw_text(
            t("mandate.creditorId").format(id=self.creditor_id(data)), 14, 44,
            size=11, font="Helvetica-Bold",
        )

        # Legal text
        ctx.move_to(54)
        for line in ctx.wrap_text(t(self.legal_key), pw - 24, LEGAL_SIZE):
            ctx.ensure_space(LEGAL_STEP)
            ctx.draw_text(line, LABEL_X, ctx.y, size=LEGAL_SIZE)
            ctx.advance(LEGAL_STEP)

        self.text_field(ctx, t("mandate.customerName"), data.name, BOX_X, pw - 72)
        ctx.advance(12)
        self._address(ctx, data.address)
        self._locality(ctx, data)
        ctx.advance(14)
        self.account_rows(ctx, data)
        self._creditor_box(ctx)
        self._payment_type(ctx, data.payment_type)
        ctx.advance(12)
        self.text_field(ctx, t("mandate.signingDate"), data.signature_date, 45, 60)
        ctx.advance(18)
        self._signature(ctx, data.signature_image)

    # ------------------------------------------------------------------
    # Boxed fields (cursor = top edge of the row's box)
    # ------------------------------------------------------------------

    def text_field(
        self, ctx: RenderContext, label: str, value: str, box_x: float, box_w: float,
        label_x: float = LABEL_X,
    ) -> None:
        ctx.ensure_space(FIELD_H)
        top = ctx.y
        baseline = top + 6
        ctx.draw_text(label, label_x, baseline, size=10, font="Helvetica-Bold")
        ctx.draw_rect(box_x, top, box_w, FIELD_H)
        if value:
            ctx.draw_text(value, box_x + 2, baseline, size=10)

    def _address(self, ctx: RenderContext, address: str) -> None:
        pw = ctx.cursor.page_width
        ctx.ensure_space(24)
        top = ctx.y
        ctx.draw_text(self.t("mandate.customerAddress"), LABEL_X, top + 8, size=10, font="Helvetica-Bold")
        ctx.draw_rect(BOX_X, top, pw - 72, 24)
        if address:
            lines = ctx.wrap_text(address, pw - 80, 10)[:4]
            ctx.draw_lines(lines, BOX_X + 2, top + 10, size=10)
        ctx.advance(36)

    def _locality(self, ctx: RenderContext, data: MandateBase) -> None:
        t = self.t
        pw = ctx.cursor.page_width
        city_x, box_w = 30.0, 40.0
        postcode_x = city_x + box_w + 25
        country_x = pw - box_w - 12
        self.text_field(ctx, t("mandate.city"), data.city, city_x, box_w)
        self.text_field(ctx, t("mandate.postcode"), data.postcode, postcode_x, box_w, label_x=postcode_x - 22)
        self.text_field(ctx, t("mandate.country"), data.country, country_x, box_w, label_x=country_x - 20)

    def _creditor_box(self, ctx: RenderContext) -> None:
        t = self.t
        pw = ctx.cursor.page_width
        ctx.ensure_space(28)
        top = ctx.y
        ctx.draw_rect(LABEL_X, top, pw - 24, 28)
        for i, key in enumerate(("mandate.creditorName", "mandate.creditorAddress", "mandate.creditorCountry")):
            ctx.draw_text(t(key), 14, top + 6 * (i + 1), size=9, font="Helvetica-Bold")
        ctx.advance(30)

    def _payment_type(self, ctx: RenderContext, payment_type: str) -> None:
        t = self.t
        ctx.ensure_space(FIELD_H)
        baseline = ctx.y + 6
        ctx.draw_text(t("mandate.paymentType"), LABEL_X, baseline, size=10, font="Helvetica-Bold")
        for x, value, key in ((90.0, "recurrent", "mandate.recurrent"), (160.0, "one-off", "mandate.oneOff")):
            ctx.draw_circle(x, baseline - 1.5, 2)
            ctx.draw_text(t(key), x + 6, baseline, size=10, font="Helvetica-Bold")
            if payment_type == value:
                ctx.draw_circle(x, baseline - 1.5, 1.2, stroke=False, fill=(0, 0, 0))

    def _signature(self, ctx: RenderContext, image: str | None) -> None:
        ctx.ensure_space(SIG_H)
        top = ctx.y
        ctx.draw_text(self.t("mandate.signatures"), LABEL_X, top + 6, size=10, font="Helvetica-Bold")
        ctx.draw_rect(BOX_X, top, SIG_W, SIG_H)
        if image:
            ctx.draw_image(
                image, BOX_X + SIG_INSET, top + SIG_INSET, SIG_W - 2 * SIG_INSET, SIG_H - 2 * SIG_INSET,
                label="signature",
            )
        ctx.advance(SIG_H)


class SepaMandateBuilder(_MandateBuilder):
    title_key = "app.title.sepa"
    band_key = "app.title.sepa"
    legal_key = "mandate.legal.sepa"

    def creditor_id(self, data: SepaMandateData) -> str:
        return data.creditor_id or CARD_CREDITOR_ID

    def account_rows(self, ctx: RenderContext, data: SepaMandateData) -> None:
        t = self.t
        pw = ctx.cursor.page_width
        self.text_field(ctx, t("mandate.mandateRef"), data.unique_mandate_ref, BOX_X, pw - 72)
        ctx.advance(14)
        self.text_field(ctx, t("mandate.iban"), data.iban, BOX_X, 80)
        self.text_field(ctx, t("mandate.bic"), data.bic, pw - 12 - 35, 35, label_x=pw - 12 - 35 - 22)
        ctx.advance(22)


class CardPaymentBuilder(_MandateBuilder):
    title_key = "app.title.card"
    band_key = "app.title.card"

    def account_rows(self, ctx: RenderContext, data: CardPaymentData) -> None:
        t = self.t
        pw = ctx.cursor.page_width
        self.text_field(ctx, t("mandate.cardNumber"), data.card_number, BOX_X, pw - 72)
        ctx.advance(14)
        self.text_field(ctx, t("mandate.expiry"), data.expiry, BOX_X, 40)
        self.text_field(ctx, t("mandate.cvc"), data.cvc, 126, 30, label_x=110)
        ctx.advance(22)
