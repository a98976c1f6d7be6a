#!/usr/bin/env python3
"""
Solar Radiation Timeseries Module.

Computes extraterrestrial (top of atmosphere) shortwave radiation on a
horizontal plane for a fixed location and interpolates radiation series to a
finer time resolution.

Radiation values are backwards averaged: the value at time t is the mean over
the interval (t - dt, t]. Because the mean is integrated analytically over the
hour angle, averaging four 15-minute values gives the covering hourly value.
"""

import enum
from dataclasses import dataclass
from typing import Union

import numpy as np
import pandas as pd
import xarray as xr

SOLAR_CONSTANT = 1367.0  # W m-2
SECONDS_PER_DAY = 86400
TROPICAL_YEAR_DAYS = 365.2422
# 2000-01-01 12:00 UTC in days since 1970-01-01
J2000_DAYS = 10957.5


class InterpolationType(str, enum.Enum):
    LINEAR = "linear"
    BACKWARDS = "backwards"
    SOLAR_BACKWARDS_AVERAGED = "solar_backwards_averaged"


@dataclass(frozen=True)
class TimeRange:
    """Regular time axis from ``start`` (inclusive) to ``end`` (exclusive).

    Parameters
    ----------
    start : pd.Timestamp
        First time step (UTC).
    end : pd.Timestamp
        End of the range, not included.
    dt_seconds : int
        Step width in seconds.

    Examples
    --------
    >>> hourly = TimeRange(pd.Timestamp(2000, 1, 1), pd.Timestamp(2000, 1, 2), 3600)
    >>> len(hourly)
    24
    >>> len(hourly.shifted(-3600 + 900).with_dt(900))
    96
    """
    start: pd.Timestamp
    end: pd.Timestamp
    dt_seconds: int

    def __post_init__(self):
        if self.dt_seconds <= 0:
            raise ValueError(f"dt_seconds must be positive, got {self.dt_seconds}")
        object.__setattr__(self, "start", pd.Timestamp(self.start))
        object.__setattr__(self, "end", pd.Timestamp(self.end))

    def __len__(self) -> int:
        span = _epoch_seconds(self.end) - _epoch_seconds(self.start)
        return max(0, -(-span // self.dt_seconds))

    def epoch_seconds(self) -> np.ndarray:
        """Seconds since 1970-01-01 for every step."""
        start = _epoch_seconds(self.start)
        return start + np.arange(len(self), dtype=np.int64) * self.dt_seconds

    @property
    def index(self) -> pd.DatetimeIndex:
        return pd.to_datetime(self.epoch_seconds(), unit="s")

    def shifted(self, seconds: int) -> "TimeRange":
        """Move start and end by ``seconds``."""
        offset = pd.Timedelta(seconds=seconds)
        return TimeRange(self.start + offset, self.end + offset, self.dt_seconds)

    def with_dt(self, dt_seconds: int) -> "TimeRange":
        return TimeRange(self.start, self.end, dt_seconds)


def _epoch_seconds(timestamp: pd.Timestamp) -> int:
    return timestamp.value // 1_000_000_000


def _solar_geometry(epoch_seconds: np.ndarray) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Declination (rad), equation of time (hours) and eccentricity factor.

    Fourier series after Spencer (1971), evaluated on a fractional year angle
    anchored at J2000 so it does not drift over centuries.
    """
    days = epoch_seconds / SECONDS_PER_DAY
    gamma = 2 * np.pi * np.mod(days - J2000_DAYS, TROPICAL_YEAR_DAYS) / TROPICAL_YEAR_DAYS

    cos1, sin1 = np.cos(gamma), np.sin(gamma)
    cos2, sin2 = np.cos(2 * gamma), np.sin(2 * gamma)
    cos3, sin3 = np.cos(3 * gamma), np.sin(3 * gamma)

    declination = (
        0.006918 - 0.399912 * cos1 + 0.070257 * sin1
        - 0.006758 * cos2 + 0.000907 * sin2
        - 0.002697 * cos3 + 0.00148 * sin3
    )
    equation_of_time_minutes = 229.18 * (
        0.000075 + 0.001868 * cos1 - 0.032077 * sin1
        - 0.014615 * cos2 - 0.040849 * sin2
    )
    eccentricity = 1.000110 + 0.034221 * cos1 + 0.001280 * sin1 + 0.000719 * cos2 + 0.000077 * sin2
    return declination, equation_of_time_minutes / 60, eccentricity


def _clipped_integral(lo, hi, limit, a, b):
    """Integral of a + b cos(w) over [lo, hi] restricted to [-limit, limit]."""
    lo = np.maximum(lo, -limit)
    hi = np.minimum(hi, limit)
    integral = a * (hi - lo) + b * (np.sin(hi) - np.sin(lo))
    return np.where(hi > lo, integral, 0.0)


def _backwards_averaged_radiation(latitude: float, longitude: float, epoch_seconds: np.ndarray, dt_seconds: int) -> np.ndarray:
    declination, equation_of_time, eccentricity = _solar_geometry(epoch_seconds - dt_seconds / 2)

    phi = np.deg2rad(latitude)
    a = np.sin(phi) * np.sin(declination)
    b = np.cos(phi) * np.cos(declination)
    # Sunset hour angle; 0 during polar night, pi during polar day
    sunset = np.arccos(np.clip(-np.tan(phi) * np.tan(declination), -1.0, 1.0))

    utc_hours = np.mod(epoch_seconds, SECONDS_PER_DAY) / 3600
    solar_hours = utc_hours + longitude / 15 + equation_of_time
    hour_angle_end = np.mod((solar_hours - 12) * np.pi / 12 + np.pi, 2 * np.pi) - np.pi
    width = dt_seconds * 2 * np.pi / SECONDS_PER_DAY
    hour_angle_start = hour_angle_end - width

    # Intervals starting before solar midnight wrap into the previous day
    integral = _clipped_integral(hour_angle_start, hour_angle_end, sunset, a, b)
    integral += _clipped_integral(hour_angle_start + 2 * np.pi, hour_angle_end + 2 * np.pi, sunset, a, b)

    mean_cos_zenith = np.maximum(integral / width, 0.0)
    return SOLAR_CONSTANT * eccentricity * mean_cos_zenith


def extra_terrestrial_radiation_backwards(
    latitude: float,
    longitude: float,
    timerange: TimeRange,
) -> xr.DataArray:
    """Backwards averaged extraterrestrial radiation for one location.

    Parameters
    ----------
    latitude : float
        Latitude in degrees north.
    longitude : float
        Longitude in degrees east.
    timerange : TimeRange
        Time axis. Each value is the mean over the preceding ``dt_seconds``.

    Returns
    -------
    xr.DataArray
        float32 radiation in W m-2 with a ``time`` coordinate.
    """
    if not -90 <= latitude <= 90:
        raise ValueError(f"latitude must be within [-90, 90], got {latitude}")

    values = _backwards_averaged_radiation(latitude, longitude, timerange.epoch_seconds(), timerange.dt_seconds)
    return xr.DataArray(
        values.astype(np.float32),
        coords={"time": timerange.index},
        dims="time",
        name="extra_terrestrial_radiation",
        attrs={
            "units": "W m-2",
            "latitude": latitude,
            "longitude": longitude,
            "dt_seconds": timerange.dt_seconds,
        },
    )


def interpolate(
    series: Union[xr.DataArray, np.ndarray],
    kind: InterpolationType,
    time_old: TimeRange,
    time_new: TimeRange,
    latitude: float,
    longitude: float,
    scalefactor: float,
) -> xr.DataArray:
    """Resample ``series`` from ``time_old`` to ``time_new``.

    Parameters
    ----------
    series : xr.DataArray or np.ndarray
        Values on ``time_old``.
    kind : InterpolationType
        LINEAR interpolates between instants, BACKWARDS holds the value of the
        interval covering each new instant, SOLAR_BACKWARDS_AVERAGED
        interpolates the ratio to extraterrestrial radiation and rescales it
        with the radiation of the new intervals.
    time_old, time_new : TimeRange
        Source and target time axes.
    latitude, longitude : float
        Location, used by SOLAR_BACKWARDS_AVERAGED.
    scalefactor : float
        Results are rounded to multiples of ``1 / scalefactor``.

    Returns
    -------
    xr.DataArray
        float32 values on ``time_new``.
    """
    kind = InterpolationType(kind)
    values = np.asarray(series, dtype=np.float64)
    if values.shape != (len(time_old),):
        raise ValueError(f"Series has shape {values.shape}, expected ({len(time_old)},)")
    if scalefactor <= 0:
        raise ValueError(f"scalefactor must be positive, got {scalefactor}")

    t_old = time_old.epoch_seconds()
    t_new = time_new.epoch_seconds()

    if len(t_old) == 0:
        out = np.full(len(t_new), np.nan)
    elif kind == InterpolationType.LINEAR:
        out = np.interp(t_new, t_old, values)
    elif kind == InterpolationType.BACKWARDS:
        index = np.ceil((t_new - t_old[0]) / time_old.dt_seconds).astype(np.int64)
        out = values[np.clip(index, 0, len(values) - 1)]
    else:
        radiation_old = _backwards_averaged_radiation(latitude, longitude, t_old, time_old.dt_seconds)
        radiation_new = _backwards_averaged_radiation(latitude, longitude, t_new, time_new.dt_seconds)
        with np.errstate(divide="ignore", invalid="ignore"):
            clearness = np.where(radiation_old > 0, values / radiation_old, np.nan)
        valid = np.isfinite(clearness)
        if valid.any():
            # Interpolate at interval centres so the ratio stays aligned with its interval
            centre_old = t_old[valid] - time_old.dt_seconds / 2
            centre_new = t_new - time_new.dt_seconds / 2
            clearness_new = np.interp(centre_new, centre_old, clearness[valid])
        else:
            clearness_new = np.zeros(len(t_new))
        out = clearness_new * radiation_new

    out = np.round(out * scalefactor) / scalefactor
    return xr.DataArray(
        out.astype(np.float32),
        coords={"time": time_new.index},
        dims="time",
        name=getattr(series, "name", None),
        attrs={"dt_seconds": time_new.dt_seconds, "interpolation": kind.value},
    )
