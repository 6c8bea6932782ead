"""Equinox timing, delta-T and equation of time for calendar year starts."""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass, field
from enum import IntEnum
from pathlib import Path
from threading import Lock
from typing import Dict, List, Optional, Protocol, Tuple

import erfa
import numpy as np
import spiceypy as spice
from spiceypy.utils.exceptions import SpiceyError

__all__ = [
    "Ephemeris",
    "EphemerisError",
    "MeeusEphemeris",
    "Season",
    "SpiceEphemeris",
    "TROPICAL_YEAR",
    "load_ephemeris",
    "loaded_files",
]

LOGGER = logging.getLogger(__name__)

TROPICAL_YEAR = 365.24219878
JULIAN_CENTURY = 36525.0
JULIAN_MILLENNIUM = 365250.0

_LOADED_FILES: Optional[List[str]] = None
_LOAD_LOCK = Lock()


class EphemerisError(RuntimeError):
    """Raised when ephemeris loading or computation fails."""


class Season(IntEnum):
    """Equinoxes and solstices, in the order of the Meeus tables."""

    spring = 0
    summer = 1
    autumn = 2
    winter = 3


# Apparent geocentric ecliptic longitude of the Sun at each season start.
SEASON_LONGITUDES: Dict[Season, float] = {
    Season.spring: 0.0,
    Season.summer: math.pi / 2,
    Season.autumn: math.pi,
    Season.winter: -math.pi / 2,
}

# Meeus, Astronomical Algorithms, table 27.A (years -1000..1000), JDE0
# polynomial coefficients in Y = year / 1000, lowest order first.
_MEAN_SEASONS_BEFORE_1000 = np.array(
    [
        [1721139.29189, 365242.13740, 0.06134, 0.00111, -0.00071],
        [1721233.25401, 365241.72562, -0.05323, 0.00907, 0.00025],
        [1721325.70455, 365242.49558, -0.11677, -0.00297, 0.00074],
        [1721414.39987, 365242.88257, -0.00769, -0.00933, -0.00006],
    ]
)

# Table 27.B (years 1000..3000), Y = (year - 2000) / 1000.
_MEAN_SEASONS_AFTER_1000 = np.array(
    [
        [2451623.80984, 365242.37404, 0.05169, -0.00411, -0.00057],
        [2451716.56767, 365241.62603, 0.00325, 0.00888, -0.00030],
        [2451810.21715, 365242.01767, -0.11575, 0.00337, 0.00078],
        [2451900.05952, 365242.74049, -0.06223, -0.00823, 0.00032],
    ]
)

# Table 27.C: amplitude A, phase B (deg), rate C (deg per century).
_PERIODIC_TERMS = np.array(
    [
        [485, 324.96, 1934.136],
        [203, 337.23, 32964.467],
        [199, 342.08, 20.186],
        [182, 27.85, 445267.112],
        [156, 73.14, 45036.886],
        [136, 171.52, 22518.443],
        [77, 222.54, 65928.934],
        [74, 296.72, 3034.906],
        [70, 243.58, 9037.513],
        [58, 119.81, 33718.147],
        [52, 297.17, 150.678],
        [50, 21.02, 2281.226],
        [45, 247.54, 29929.562],
        [44, 325.15, 31555.956],
        [29, 60.93, 4443.417],
        [18, 155.12, 67555.328],
        [17, 288.79, 4562.452],
        [16, 198.04, 62894.029],
        [14, 199.76, 31436.921],
        [12, 95.39, 14577.848],
        [12, 287.11, 31931.756],
        [12, 320.81, 34777.259],
        [9, 227.73, 1222.114],
        [8, 15.45, 16859.074],
    ]
)


class Ephemeris(Protocol):
    """Source of season timing used to anchor astronomical calendars.

    Implementations must be pure functions of their arguments so that
    conversions stay safe to run from several threads.
    """

    def equinox(self, year: int, season: Season) -> float:
        """Return the Julian Ephemeris Day (TT) of the season start."""

    def delta_t(self, year: float) -> float:
        """Return TT - UT in seconds."""

    def equation_of_time(self, jde: float) -> float:
        """Return apparent minus mean solar time as a fraction of a day."""


def _nutation_and_obliquity(jde: float) -> Tuple[float, float]:
    """Return nutation in longitude and true obliquity, both in radians."""

    dpsi, deps = erfa.nut06a(erfa.DJ00, jde - erfa.DJ00)
    epsilon = erfa.obl06(erfa.DJ00, jde - erfa.DJ00) + deps
    return float(dpsi), float(epsilon)


def _delta_t_espenak_meeus(year: float) -> float:
    """Polynomial fits of Espenak & Meeus (2006) for TT - UT in seconds."""

    y = float(year)
    if y < -500 or y >= 2150:
        u = (y - 1820.0) / 100.0
        return -20.0 + 32.0 * u * u
    if y < 500:
        u = y / 100.0
        return (
            10583.6 - 1014.41 * u + 33.78311 * u**2 - 5.952053 * u**3
            - 0.1798452 * u**4 + 0.022174192 * u**5 + 0.0090316521 * u**6
        )
    if y < 1600:
        u = (y - 1000.0) / 100.0
        return (
            1574.2 - 556.01 * u + 71.23472 * u**2 + 0.319781 * u**3
            - 0.8503463 * u**4 - 0.005050998 * u**5 + 0.0083572073 * u**6
        )
    if y < 1700:
        t = y - 1600.0
        return 120.0 - 0.9808 * t - 0.01532 * t**2 + t**3 / 7129.0
    if y < 1800:
        t = y - 1700.0
        return (
            8.83 + 0.1603 * t - 0.0059285 * t**2 + 0.00013336 * t**3
            - t**4 / 1174000.0
        )
    if y < 1860:
        t = y - 1800.0
        return (
            13.72 - 0.332447 * t + 0.0068612 * t**2 + 0.0041116 * t**3
            - 0.00037436 * t**4 + 0.0000121272 * t**5 - 0.0000001699 * t**6
            + 0.000000000875 * t**7
        )
    if y < 1900:
        t = y - 1860.0
        return (
            7.62 + 0.5737 * t - 0.251754 * t**2 + 0.01680668 * t**3
            - 0.0004473624 * t**4 + t**5 / 233174.0
        )
    if y < 1920:
        t = y - 1900.0
        return -2.79 + 1.494119 * t - 0.0598939 * t**2 + 0.0061966 * t**3 - 0.000197 * t**4
    if y < 1941:
        t = y - 1920.0
        return 21.20 + 0.84493 * t - 0.076100 * t**2 + 0.0020936 * t**3
    if y < 1961:
        t = y - 1950.0
        return 29.07 + 0.407 * t - t**2 / 233.0 + t**3 / 2547.0
    if y < 1986:
        t = y - 1975.0
        return 45.45 + 1.067 * t - t**2 / 260.0 - t**3 / 718.0
    if y < 2005:
        t = y - 2000.0
        return (
            63.86 + 0.3345 * t - 0.060374 * t**2 + 0.0017275 * t**3
            + 0.000651814 * t**4 + 0.00002373599 * t**5
        )
    if y < 2050:
        t = y - 2000.0
        return 62.92 + 0.32217 * t + 0.005589 * t**2
    u = (y - 1820.0) / 100.0
    return -20.0 + 32.0 * u * u - 0.5628 * (2150.0 - y)


@dataclass(frozen=True)
class MeeusEphemeris:
    """Analytic season timing after Meeus, *Astronomical Algorithms* ch. 27-28.

    Accurate to about a minute for equinoxes between -1000 and +3000, which
    is far inside the day-level rounding applied by the calendars.
    """

    def equinox(self, year: int, season: Season) -> float:
        season = Season(season)
        if year < 1000:
            coefficients = _MEAN_SEASONS_BEFORE_1000[season]
            y = year / 1000.0
        else:
            coefficients = _MEAN_SEASONS_AFTER_1000[season]
            y = (year - 2000) / 1000.0
        jde0 = float(np.polynomial.polynomial.polyval(y, coefficients))

        t = (jde0 - erfa.DJ00) / JULIAN_CENTURY
        w = math.radians(35999.373 * t - 2.47)
        delta_lambda = 1.0 + 0.0334 * math.cos(w) + 0.0007 * math.cos(2.0 * w)
        amplitude, phase, rate = _PERIODIC_TERMS.T
        s = float(np.sum(amplitude * np.cos(np.radians(phase + rate * t))))
        return jde0 + (0.00001 * s) / delta_lambda

    def delta_t(self, year: float) -> float:
        return _delta_t_espenak_meeus(year)

    def equation_of_time(self, jde: float) -> float:
        tau = (jde - erfa.DJ00) / JULIAN_MILLENNIUM
        mean_longitude = (
            280.4664567
            + 360007.6982779 * tau
            + 0.03032028 * tau**2
            + tau**3 / 49931.0
            - tau**4 / 15300.0
            - tau**5 / 2000000.0
        )
        dpsi, epsilon = _nutation_and_obliquity(jde)
        alpha = math.degrees(_apparent_solar_right_ascension(jde, dpsi, epsilon))
        e = (
            mean_longitude
            - 0.0057183
            - alpha
            + math.degrees(dpsi) * math.cos(epsilon)
        )
        # Wrap to (-180, 180] degrees; 360 degrees of hour angle is one day.
        e = (e + 180.0) % 360.0 - 180.0
        return e / 360.0


def _apparent_solar_right_ascension(jde: float, dpsi: float, epsilon: float) -> float:
    """Low-precision apparent right ascension of the Sun (Meeus ch. 25), radians."""

    t = (jde - erfa.DJ00) / JULIAN_CENTURY
    l0 = 280.46646 + 36000.76983 * t + 0.0003032 * t * t
    m = math.radians(357.52911 + 35999.05029 * t - 0.0001537 * t * t)
    center = (
        (1.914602 - 0.004817 * t - 0.000014 * t * t) * math.sin(m)
        + (0.019993 - 0.000101 * t) * math.sin(2.0 * m)
        + 0.000289 * math.sin(3.0 * m)
    )
    # Aberration plus nutation in longitude.
    apparent = math.radians(l0 + center - 0.00569) + dpsi
    return math.atan2(math.cos(epsilon) * math.sin(apparent), math.cos(apparent))


def load_ephemeris(bsp_dir: str) -> List[str]:
    """Load all SPK kernels from *bsp_dir* using :mod:`spiceypy`.

    Parameters
    ----------
    bsp_dir:
        Directory containing one or more ``.bsp`` files.

    Returns
    -------
    list[str]
        Sorted list of loaded kernel file names.

    Raises
    ------
    EphemerisError
        If the directory is missing or contains no ``.bsp`` files.
    """

    global _LOADED_FILES

    if _LOADED_FILES is not None:
        return _LOADED_FILES

    path = Path(bsp_dir).expanduser()
    if not path.is_dir():
        raise EphemerisError(f"Ephemeris directory not found: {path}")

    with _LOAD_LOCK:
        if _LOADED_FILES is not None:
            return _LOADED_FILES

        bsp_files = sorted(
            file for file in path.iterdir() if file.is_file() and file.suffix.lower() == ".bsp"
        )
        if not bsp_files:
            raise EphemerisError(f"No .bsp ephemeris files found in directory: {path}")

        loaded: List[str] = []
        for bsp_file in bsp_files:
            try:
                spice.furnsh(str(bsp_file))
            except SpiceyError as exc:
                spice.kclear()
                raise EphemerisError(
                    f"Failed to load ephemeris file '{bsp_file}': {exc}"
                ) from exc
            loaded.append(bsp_file.name)

        _LOADED_FILES = loaded
        LOGGER.info(json.dumps({"event": "ephemeris_loaded", "files": loaded}))
        return loaded


def loaded_files() -> List[str]:
    """Return the kernel names loaded so far, empty when none."""

    return list(_LOADED_FILES or [])


def _apparent_solar_longitude(jde: float) -> float:
    """Apparent geocentric ecliptic longitude of the Sun from the DE kernel."""

    et = (jde - erfa.DJ00) * erfa.DAYSEC
    try:
        sun_vector, _ = spice.spkpos("SUN", et, "J2000", "LT+S", "EARTH")
    except SpiceyError as exc:
        raise EphemerisError(f"Sun position unavailable at JDE {jde}: {exc}") from exc
    rotation = np.array(erfa.pnm06a(erfa.DJ00, jde - erfa.DJ00), dtype=float)
    x, y, z = rotation @ np.array(sun_vector, dtype=float)
    _, epsilon = _nutation_and_obliquity(jde)
    return math.atan2(y * math.cos(epsilon) + z * math.sin(epsilon), x)


def _wrap_angle(angle: float) -> float:
    return angle - 2.0 * math.pi * math.floor((angle + math.pi) / (2.0 * math.pi))


def _refine_crossing(
    start_jde: float,
    end_jde: float,
    target: float,
    max_iterations: int = 48,
) -> float:
    """Bisect the instant in [*start_jde*, *end_jde*] where the Sun reaches *target*."""

    low, high = start_jde, end_jde
    value_low = _wrap_angle(_apparent_solar_longitude(low) - target)
    value_high = _wrap_angle(_apparent_solar_longitude(high) - target)
    if value_low == 0:
        return low
    if value_high == 0:
        return high
    if value_low * value_high > 0:
        raise EphemerisError(
            f"Solar longitude {target:.6f} rad not bracketed in [{start_jde}, {end_jde}]"
        )
    for _ in range(max_iterations):
        mid = low + (high - low) / 2
        value_mid = _wrap_angle(_apparent_solar_longitude(mid) - target)
        if abs(value_mid) < 1e-10 or (high - low) <= 1e-6:
            return mid
        if value_low * value_mid <= 0:
            high = mid
        else:
            low, value_low = mid, value_mid
    return low + (high - low) / 2


@dataclass(frozen=True)
class SpiceEphemeris:
    """Season timing refined against a JPL DE kernel.

    The Meeus estimate seeds a bisection on the apparent solar longitude;
    delta-T and the equation of time come from *analytic*.
    """

    analytic: MeeusEphemeris = field(default_factory=MeeusEphemeris)
    window_days: float = 2.0

    def equinox(self, year: int, season: Season) -> float:
        if _LOADED_FILES is None:
            raise EphemerisError("Ephemeris kernels have not been loaded")
        season = Season(season)
        guess = self.analytic.equinox(year, season)
        return _refine_crossing(
            guess - self.window_days,
            guess + self.window_days,
            SEASON_LONGITUDES[season],
        )

    def delta_t(self, year: float) -> float:
        return self.analytic.delta_t(year)

    def equation_of_time(self, jde: float) -> float:
        return self.analytic.equation_of_time(jde)
