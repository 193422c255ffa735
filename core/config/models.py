"""Engine settings models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class SectionColor(BaseModel):
    """Background/text color pair used to highlight one section in the preview."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    bg: str
    text: str


def _default_section_colors() -> list[SectionColor]:
    return [
        SectionColor(bg="#FEF3C7", text="#92400E"),
        SectionColor(bg="#DBEAFE", text="#1E40AF"),
        SectionColor(bg="#FCE7F3", text="#9D174D"),
        SectionColor(bg="#D1FAE5", text="#065F46"),
        SectionColor(bg="#E0E7FF", text="#3730A3"),
        SectionColor(bg="#FEE2E2", text="#991B1B"),
        SectionColor(bg="#F3F4F6", text="#374151"),
        SectionColor(bg="#CFFAFE", text="#155E75"),
    ]


class EngineSettings(BaseModel):
    """Tunable constants for preview rendering, payload building and merge detection."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    section_colors: list[SectionColor] = Field(
        default_factory=_default_section_colors, min_length=1
    )
    default_color: SectionColor = SectionColor(bg="#F3F4F6", text="#374151")
    empty_marker: str = "___"
    default_date_format: str = "dd/mm/yyyy"
    default_radio_mark: str = "/"
    merge_min_sequence: int = Field(default=3, ge=2)

    def section_color(self, index: int) -> SectionColor:
        """Return the palette color for a section index, wrapping around."""

        return self.section_colors[index % len(self.section_colors)]


DEFAULT_SETTINGS = EngineSettings()
