"""
I18n Service – label tables for generated documents.

Builders receive a plain ``translate(key) -> str`` callable; this module
provides the English and Spanish tables behind it. Lookups fall back to
English, then to the key itself, so a missing entry never breaks a build.
"""

from __future__ import annotations

import logging
import os
from typing import Callable

logger = logging.getLogger(__name__)

Translate = Callable[[str], str]

SUPPORTED_LANGUAGES = ("en", "es")

_LEGAL_CARD_EN = (
    "Legal Text: By signing this mandate form, you authorise (A) Irish Tax Agents LTD. "
    "To send instructions to your bank to debit your account and (B) your bank to debit "
    "your account in accordance with the instruction from Irish Tax Agents LTD.\n"
    "As part of your rights, you are entitled to a refund from your bank under the terms "
    "and conditions of your agreement with your bank. A refund must be claimed within "
    "8 weeks starting from the date on which your account was debited. Your rights are "
    "explained in a statement that you can obtain from your bank. Please complete all "
    "the fields below marked *"
)

_LEGAL_CARD_ES = (
    "Texto legal: Al firmar este mandato, usted autoriza (A) a Irish Tax Agents LTD. a "
    "enviar instrucciones a su banco para adeudar su cuenta y (B) a su banco a adeudar "
    "su cuenta de acuerdo con las instrucciones de Irish Tax Agents LTD.\n"
    "Como parte de sus derechos, tiene derecho a un reembolso por parte de su banco en "
    "los términos y condiciones del contrato suscrito con el mismo. El reembolso debe "
    "solicitarse dentro de las 8 semanas siguientes a la fecha de adeudo en cuenta. "
    "Por favor complete todos los campos marcados con *"
)

LABELS: dict[str, dict[str, str]] = {
    "en": {
        # Common
        "app.subtitle": "Ireland – Employee/Director, Tax Year {year}",
        "form.name": "Name",
        "form.email": "Email",
        "form.pps": "PPS",
        "form.signature": "Signature",
        "form.date": "Date",
        "form.notes": "Notes",
        "common.yes": "Yes",
        "common.no": "No",
        "declaration.title": "Declaration & Signature",

        # Mileage logbook
        "mileage.pdf.title": "Business Mileage Logbook – Ireland",
        "mileage.pdf.subtitle": "Employee/Director, Tax Year {year}",
        "mileage.declaration": (
            "I confirm the above journeys were necessarily incurred in the performance "
            "of my duties (excludes commuting)."
        ),
        "driver.section.title": "Driver & Vehicle Information",
        "driver.name": "Driver Name",
        "driver.ppsn": "PPSN",
        "vehicle.registration": "Vehicle Registration",
        "vehicle.makeModel": "Make & Model",
        "vehicle.purchaseDate": "Purchase Date",
        "vehicle.co2": "CO₂ (g/km)",
        "vehicle.engineSize": "Engine Size",
        "vehicle.fuelType": "Fuel Type",
        "trips.title": "Business Trips",
        "trip.col.no": "#",
        "trip.col.date": "Date",
        "trip.col.from": "From",
        "trip.col.to": "To",
        "trip.col.purpose": "Purpose",
        "trip.col.odoStart": "Odo Start",
        "trip.col.odoEnd": "Odo End",
        "trip.col.businessKm": "Bus. km",
        "trip.col.tolls": "Tolls €",
        "trip.col.notes": "Notes",
        "totals.title": "Annual Totals",
        "totals.totalKmAll": "Total km (All)",
        "totals.totalKmBusiness": "Total km (Business)",
        "totals.businessPercent": "Business %",
        "runningCosts.title": "Running Costs (Annual)",
        "runningCosts.fuel": "Fuel",
        "runningCosts.insurance": "Insurance",
        "runningCosts.motorTax": "Motor Tax",
        "runningCosts.repairsMaintenance": "Repairs & Maintenance",
        "runningCosts.nctTesting": "NCT Testing",
        "runningCosts.other": "Other",
        "capitalAllowances.title": "Capital Allowances",
        "capitalAllowances.carCost": "Car Cost",
        "capitalAllowances.purchaseDate": "Purchase Date",
        "capitalAllowances.co2Band": "CO₂ Band",

        # Expense report
        "app.title.expense": "Business Expense Report",
        "expense.personal.info": "Personal Information",
        "expense.vehicle.info": "Vehicle Information",
        "expense.mileage.reading": "Mileage Reading",
        "expense.expenses": "Expenses",
        "expense.items": "Itemised Expenses",
        "expense.reason": "Reason for Trip",
        "expense.trip.date": "Trip Date",
        "expense.origin": "Origin",
        "expense.destination": "Destination",
        "expense.license": "License Plate",
        "expense.make.model": "Make/Model",
        "expense.fuel.type": "Fuel Type",
        "expense.co2": "CO₂ (g/km)",
        "expense.start.km": "Start km",
        "expense.end.km": "End km",
        "expense.business.km": "Business km",
        "expense.tolls": "Tolls (€)",
        "expense.parking": "Parking (€)",
        "expense.fuel": "Fuel (€)",
        "expense.meals": "Meals (€)",
        "expense.accommodation": "Accommodation (€)",
        "expense.col.category": "Category",
        "expense.col.description": "Description",
        "expense.col.amount": "Amount",
        "expense.declaration": (
            "I confirm that the above expenses were necessarily incurred in the performance "
            "of my duties for business travel purposes. All information provided is true and "
            "accurate to the best of my knowledge."
        ),

        # Company incorporation
        "app.title.incorporation": "Company Incorporation",
        "app.subtitle.incorporation": "Details for your new company",
        "incorporation.applicant": "Applicant",
        "incorporation.company": "Company Details",
        "incorporation.directors": "Directors",
        "incorporation.director": "Director {n}",
        "incorporation.secretary": "Company Secretary",
        "incorporation.secretary.none": "No secretary provided",
        "incorporation.owners": "Company Owners",
        "incorporation.shareCapital": "Share Capital",
        "incorporation.confirm": "Applicant confirms the details and wishes to proceed",
        "company.preferredName": "Preferred Name",
        "company.alternativeName": "Alternative Name",
        "company.activities": "Activities",
        "company.address": "Registered Address",
        "company.eircode": "Eircode",
        "person.fullName": "Full Name",
        "person.email": "Email",
        "person.address": "Address",
        "person.phone": "Phone",
        "person.dob": "Date of Birth",
        "person.nationality": "Nationality",
        "person.pps": "PPS",
        "person.profession": "Profession",
        "owner.share": "Share %",

        # Payment mandates
        "app.title.sepa": "SEPA DIRECT DEBIT MANDATE",
        "app.title.card": "CARD PAYMENT",
        "mandate.creditorId": "*Creditor Identifier: {id}",
        "mandate.legal.card": _LEGAL_CARD_EN,
        "mandate.legal.sepa": _LEGAL_CARD_EN,
        "mandate.mandateRef": "*Mandate Reference",
        "mandate.customerName": "Customer Name :",
        "mandate.customerAddress": "Customer Address:",
        "mandate.city": "*City:",
        "mandate.postcode": "*Postcode:",
        "mandate.country": "*Country:",
        "mandate.iban": "*Account (IBAN)",
        "mandate.bic": "*Swift BIC",
        "mandate.cardNumber": "*Card Number",
        "mandate.expiry": "*Expiration Date",
        "mandate.cvc": "*CVC",
        "mandate.creditorName": "*Creditors Name: Irish Tax Agents Limited",
        "mandate.creditorAddress": (
            "*Creditors Address: Nexus, Officepods Cranford Centre, Stillorgan Rd., Dublin 4 (D04F1P2)"
        ),
        "mandate.creditorCountry": "*Country: Republic of Ireland",
        "mandate.paymentType": "*Type of payment",
        "mandate.recurrent": "Recurrent",
        "mandate.oneOff": "One-Off Payment",
        "mandate.signingDate": "*Date of signing:",
        "mandate.signatures": "*Signature(s):",
    },
    "es": {
        "app.subtitle": "Irlanda - Empleado/Director, Año Fiscal {year}",
        "form.name": "Nombre",
        "form.email": "Email",
        "form.pps": "PPS",
        "form.signature": "Firma",
        "form.date": "Fecha",
        "form.notes": "Notas",
        "common.yes": "Sí",
        "common.no": "No",
        "declaration.title": "Declaración y Firma",

        "mileage.pdf.title": "Libro de Kilometraje Laboral – Irlanda",
        "mileage.pdf.subtitle": "Empleado/Director, Año Fiscal {year}",
        "mileage.declaration": (
            "Confirmo que los viajes anteriores fueron necesariamente incurridos en el "
            "desempeño de mis funciones (excluye desplazamientos)."
        ),
        "driver.section.title": "Información del Conductor y Vehículo",
        "driver.name": "Nombre del Conductor",
        "driver.ppsn": "PPS",
        "vehicle.registration": "Matrícula del Vehículo",
        "vehicle.makeModel": "Marca y Modelo",
        "vehicle.purchaseDate": "Fecha de Compra",
        "vehicle.co2": "CO₂ (g/km)",
        "vehicle.engineSize": "Tamaño del Motor",
        "vehicle.fuelType": "Tipo de Combustible",
        "trips.title": "Viajes de Trabajo",
        "trip.col.date": "Fecha",
        "trip.col.from": "Desde",
        "trip.col.to": "Hasta",
        "trip.col.purpose": "Propósito",
        "trip.col.odoStart": "Odó. Inicio",
        "trip.col.odoEnd": "Odó. Final",
        "trip.col.businessKm": "Km Lab.",
        "trip.col.tolls": "Peajes €",
        "trip.col.notes": "Notas",
        "totals.title": "Totales Anuales",
        "totals.totalKmAll": "Km Totales (Todos)",
        "totals.totalKmBusiness": "Km Totales (Laborales)",
        "totals.businessPercent": "% Laboral",
        "runningCosts.title": "Costos de Operación (Anual)",
        "runningCosts.fuel": "Combustible",
        "runningCosts.insurance": "Seguro",
        "runningCosts.motorTax": "Impuesto de Circulación",
        "runningCosts.repairsMaintenance": "Reparaciones y Mantenimiento",
        "runningCosts.nctTesting": "Prueba NCT",
        "runningCosts.other": "Otro",
        "capitalAllowances.title": "Deducciones por Capital",
        "capitalAllowances.carCost": "Costo del Vehículo",
        "capitalAllowances.purchaseDate": "Fecha de Compra",
        "capitalAllowances.co2Band": "Banda CO₂",

        "app.title.expense": "Informe de Gastos por Viajes de Trabajo",
        "expense.personal.info": "Información Personal",
        "expense.vehicle.info": "Datos del Vehículo",
        "expense.mileage.reading": "Lectura de Kilometraje",
        "expense.expenses": "Gastos",
        "expense.items": "Detalle de Gastos",
        "expense.reason": "Motivo del viaje",
        "expense.trip.date": "Fecha del viaje",
        "expense.origin": "Origen",
        "expense.destination": "Destino",
        "expense.license": "Matrícula",
        "expense.make.model": "Marca/Modelo",
        "expense.fuel.type": "Tipo de combustible",
        "expense.co2": "CO₂ (g/km)",
        "expense.start.km": "Kilómetros inicio",
        "expense.end.km": "Kilómetros final",
        "expense.business.km": "Suma de kms realizados por trabajo",
        "expense.tolls": "Peajes (€)",
        "expense.parking": "Parking (€)",
        "expense.fuel": "Combustible (€)",
        "expense.meals": "Dietas (€)",
        "expense.accommodation": "Alojamiento (€)",
        "expense.col.category": "Categoría",
        "expense.col.description": "Descripción",
        "expense.col.amount": "Importe",
        "expense.declaration": (
            "Confirmo que los gastos anteriores fueron necesariamente incurridos en el "
            "desempeño de mis funciones para fines de viajes de trabajo. Toda la información "
            "proporcionada es verdadera y precisa según mi leal saber y entender."
        ),

        "app.title.incorporation": "Constitución de Empresa",
        "app.subtitle.incorporation": "Detalles para su nueva empresa",
        "incorporation.applicant": "Solicitante",
        "incorporation.company": "Datos de la Empresa",
        "incorporation.directors": "Directores",
        "incorporation.director": "Director {n}",
        "incorporation.secretary": "Secretario de la Empresa",
        "incorporation.secretary.none": "Sin secretario indicado",
        "incorporation.owners": "Propietarios",
        "incorporation.shareCapital": "Capital Social",
        "incorporation.confirm": "El solicitante confirma los datos y desea continuar",
        "company.preferredName": "Nombre Preferido",
        "company.alternativeName": "Nombre Alternativo",
        "company.activities": "Actividades",
        "company.address": "Domicilio Social",
        "person.fullName": "Nombre Completo",
        "person.address": "Dirección",
        "person.phone": "Teléfono",
        "person.dob": "Fecha de Nacimiento",
        "person.nationality": "Nacionalidad",
        "person.profession": "Profesión",
        "owner.share": "% Participación",

        "app.title.sepa": "MANDATO DE ADEUDO DIRECTO SEPA",
        "app.title.card": "PAGO CON TARJETA",
        "mandate.creditorId": "*Identificador del Acreedor: {id}",
        "mandate.legal.card": _LEGAL_CARD_ES,
        "mandate.legal.sepa": _LEGAL_CARD_ES,
        "mandate.mandateRef": "*Referencia del Mandato",
        "mandate.customerName": "Nombre del Cliente:",
        "mandate.customerAddress": "Dirección del Cliente:",
        "mandate.city": "*Ciudad:",
        "mandate.postcode": "*C. Postal:",
        "mandate.country": "*País:",
        "mandate.iban": "*Cuenta (IBAN)",
        "mandate.cardNumber": "*Número de Tarjeta",
        "mandate.expiry": "*Caducidad",
        "mandate.paymentType": "*Tipo de pago",
        "mandate.recurrent": "Recurrente",
        "mandate.oneOff": "Pago Único",
        "mandate.signingDate": "*Fecha de firma:",
        "mandate.signatures": "*Firma(s):",
    },
}


class Translator:
    """Callable label lookup for one language."""

    def __init__(self, language: str = "en") -> None:
        if language not in LABELS:
            logger.warning("Unsupported language %r, falling back to English", language)
            language = "en"
        self.language = language
        self._table = LABELS[language]

    def __call__(self, key: str) -> str:
        value = self._table.get(key)
        if value is None:
            value = LABELS["en"].get(key, key)
        return value


def get_translator(language: str | None = None) -> Translator:
    """Translator for *language*, or for ``DEFAULT_LANGUAGE`` (default ``en``)."""
    return Translator(language or os.getenv("DEFAULT_LANGUAGE", "en"))
