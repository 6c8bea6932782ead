"""Pydantic models for API requests and responses."""

from __future__ import annotations

from dataclasses import asdict
from typing import Annotated, List, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter

from almanac import IslamicEra, Season
from almanac.calendars import DATE_TYPES, CalendarDate, CalendarKind


class _CalendarFields(BaseModel):
    """Field payload of one calendar value, tagged by ``calendar``."""

    def to_date(self) -> CalendarDate:
        date_type = DATE_TYPES[CalendarKind(self.calendar)]
        return date_type(**self.model_dump(exclude={"calendar"}))


class JulianDayFields(_CalendarFields):
    calendar: Literal["julian_day"] = "julian_day"
    value: float = Field(..., description="Days since noon UT, 1 January 4713 BC (Julian)")


class GregorianFields(_CalendarFields):
    calendar: Literal["gregorian"] = "gregorian"
    year: int = Field(..., description="Astronomical year (1 BC is year 0)")
    month: int
    day: int


class JulianFields(_CalendarFields):
    calendar: Literal["julian"] = "julian"
    year: int = Field(..., description="Year without a year zero (1 BC is -1)")
    month: int
    day: int


class MayaFields(_CalendarFields):
    calendar: Literal["maya"] = "maya"
    baktun: int
    katun: int
    tun: int
    uinal: int
    kin: int


class IslamicFields(_CalendarFields):
    calendar: Literal["islamic"] = "islamic"
    year: int
    month: int
    day: int
    era: IslamicEra = Field(IslamicEra.civil, description="Epoch convention")


class HebrewFields(_CalendarFields):
    calendar: Literal["hebrew"] = "hebrew"
    year: int
    month: int = Field(..., description="Month number counted from Nisan (1)")
    day: int


class FrenchRepublicanFields(_CalendarFields):
    calendar: Literal["french_republican"] = "french_republican"
    year: int
    month: int
    week: int = Field(..., description="Décade within the month (1-3)")
    day: int = Field(..., description="Day within the décade (1-10)")


class PersianFields(_CalendarFields):
    calendar: Literal["persian"] = "persian"
    year: int
    month: int
    day: int


DateFields = Annotated[
    Union[
        JulianDayFields,
        GregorianFields,
        JulianFields,
        MayaFields,
        IslamicFields,
        HebrewFields,
        FrenchRepublicanFields,
        PersianFields,
    ],
    Field(discriminator="calendar"),
]

_DATE_FIELDS_ADAPTER: TypeAdapter = TypeAdapter(DateFields)


def fields_from_date(date: CalendarDate) -> DateFields:
    """Wrap a calendar value in its tagged API representation."""

    return _DATE_FIELDS_ADAPTER.validate_python({"calendar": date.kind.value, **asdict(date)})


class ConvertRequest(BaseModel):
    """Body of the ``/convert`` endpoint."""

    date: DateFields
    target: CalendarKind = Field(..., description="Calendar to convert into")
    era: IslamicEra = Field(
        IslamicEra.civil, description="Epoch convention when the target is Islamic"
    )


class ConvertResponse(BaseModel):
    """Successful conversion payload."""

    ok: bool = True
    julian_day: float = Field(..., description="Pivot Julian Day of the source date")
    source: DateFields
    result: DateFields


class EquinoxQueryParams(BaseModel):
    """Validated query parameters for the ``/equinox`` endpoint."""

    year: int = Field(..., ge=-1000, le=3000, description="Gregorian year")
    season: Literal["spring", "summer", "autumn", "winter"] = Field(
        "spring", description="Season whose start is requested"
    )

    @property
    def season_value(self) -> Season:
        return Season[self.season]


class EquinoxResponse(BaseModel):
    """Season start timing and the corrections applied by the calendars."""

    ok: bool = True
    year: int
    season: str
    jde: float = Field(..., description="Julian Ephemeris Day (TT) of the season start")
    delta_t_seconds: float
    equation_of_time_days: float


class HealthResponse(BaseModel):
    """Health-check response."""

    ok: bool = True
    ephemeris: Literal["meeus", "spice"]
    files: List[str]


class ErrorResponse(BaseModel):
    """Error payload."""

    ok: bool = False
    code: str
    error: str
