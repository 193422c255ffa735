"""Output policies for location fields picked from administrative boundaries."""

from __future__ import annotations

from core.fields.models import AddressSelection

LOCATION_OUTPUT_FORMATS = ("full", "full_en", "province", "district", "subdistrict", "district_province")


def format_location(selection: AddressSelection, output_format: str | None = None) -> str:
    """Join the picked boundary names per ``output_format``; unknown formats fall back to ``full``."""

    if output_format == "full_en":
        return ", ".join([selection.subdistrict_en, selection.district_en, selection.province_en])
    if output_format == "province":
        return selection.province
    if output_format == "district":
        return selection.district
    if output_format == "subdistrict":
        return selection.subdistrict
    if output_format == "district_province":
        return " ".join([selection.district, selection.province])
    return " ".join([selection.subdistrict, selection.district, selection.province])
