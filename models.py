"""Pydantic models for API requests and responses."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from lunisolar import LunarMonth, LunarYear, Pillar, SolarTermInstant

STEM_NAMES = ("甲", "乙", "丙", "丁", "戊", "己", "庚", "辛", "壬", "癸")
BRANCH_NAMES = ("子", "丑", "寅", "卯", "辰", "巳", "午", "未", "申", "酉", "戌", "亥")


def pillar_name(pillar: Pillar) -> str:
    return STEM_NAMES[pillar.stem] + BRANCH_NAMES[pillar.branch]


class PillarModel(BaseModel):
    """A stem-branch pair with its position in the 60-cycle."""

    stem: int = Field(..., ge=0, le=9)
    branch: int = Field(..., ge=0, le=11)
    index: int = Field(..., ge=0, le=59, description="Position in the sexagenary cycle")
    name: str

    @classmethod
    def from_pillar(cls, pillar: Pillar) -> "PillarModel":
        return cls(
            stem=pillar.stem, branch=pillar.branch, index=pillar.index, name=pillar_name(pillar)
        )


class FourPillarsModel(BaseModel):
    year: PillarModel
    month: PillarModel
    day: PillarModel
    hour: PillarModel


class LunarResponse(BaseModel):
    """Lunar date and pillars of a solar timestamp."""

    ok: bool = True
    solar: str = Field(..., description="Civil timestamp (ISO-8601, no zone)")
    lunar_year: int
    lunar_month: int = Field(..., description="Month number, negative for a leap month")
    is_leap: bool
    lunar_day: int = Field(..., ge=1, le=30)
    weekday: int = Field(..., ge=0, le=6, description="0 is Sunday")
    solar_term: Optional[str] = Field(None, description="Solar term falling on this day")
    low_confidence: bool = Field(
        False, description="Leap placement outside the curated historical tables"
    )
    pillars: FourPillarsModel


class SolarResponse(BaseModel):
    ok: bool = True
    lunar: str
    solar: str = Field(..., description="Civil timestamp (ISO-8601, no zone)")
    julian_day: float


class TermModel(BaseModel):
    name: str
    position: int = Field(..., ge=0, le=30)
    jie: bool
    civil: str = Field(..., description="Civil timestamp (ISO-8601, no zone)")
    julian_day: float

    @classmethod
    def from_instant(cls, instant: SolarTermInstant) -> "TermModel":
        return cls(
            name=instant.name,
            position=instant.position,
            jie=instant.is_jie,
            civil=instant.solar.isoformat(),
            julian_day=instant.julian_day,
        )


class TermsResponse(BaseModel):
    ok: bool = True
    year: int
    terms: List[TermModel]


class MonthModel(BaseModel):
    month: int = Field(..., description="Month number, negative for a leap month")
    leap: bool
    day_count: int
    first_day: str
    pillar: PillarModel

    @classmethod
    def from_month(cls, month: LunarMonth) -> "MonthModel":
        return cls(
            month=month.month,
            leap=month.is_leap,
            day_count=month.day_count,
            first_day=str(month.first_day),
            pillar=PillarModel.from_pillar(month.pillar),
        )


class YearResponse(BaseModel):
    ok: bool = True
    year: int
    pillar: PillarModel
    leap_month: int = Field(..., description="Leap month ordinal, 0 when none")
    day_count: int
    low_confidence: bool
    months: List[MonthModel]

    @classmethod
    def from_year(cls, lunar_year: LunarYear) -> "YearResponse":
        return cls(
            year=lunar_year.year,
            pillar=PillarModel.from_pillar(lunar_year.pillar),
            leap_month=lunar_year.leap_month,
            day_count=lunar_year.day_count,
            low_confidence=lunar_year.low_confidence,
            months=[MonthModel.from_month(month) for month in lunar_year.months],
        )


class HealthResponse(BaseModel):
    """Health-check response."""

    ok: bool = True
    provider: str
    cached_years: int
    kernels: List[str]


class ErrorResponse(BaseModel):
    """Error payload."""

    ok: bool = False
    code: str
    error: str
