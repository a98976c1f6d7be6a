"""Tests for extraterrestrial radiation and interpolation."""

import numpy as np
import pandas as pd
import pytest

from meteobench.solar import (
    SOLAR_CONSTANT,
    InterpolationType,
    TimeRange,
    extra_terrestrial_radiation_backwards,
    interpolate,
)


def _day(year, month, day, dt_seconds=3600):
    start = pd.Timestamp(year, month, day)
    return TimeRange(start, start + pd.Timedelta(days=1), dt_seconds)


class TestTimeRange:
    def test_length(self):
        assert len(TimeRange(pd.Timestamp(1900, 1, 1), pd.Timestamp(2000, 1, 1), 3600)) == 876_576

    def test_epoch_seconds_before_1970(self):
        seconds = TimeRange(pd.Timestamp(1969, 12, 31, 23), pd.Timestamp(1970, 1, 1, 1), 3600).epoch_seconds()
        np.testing.assert_array_equal(seconds, [-3600, 0])

    def test_index(self):
        index = _day(2000, 1, 1).index
        assert index[0] == pd.Timestamp(2000, 1, 1)
        assert index[-1] == pd.Timestamp(2000, 1, 1, 23)

    def test_shift_to_quarter_hours(self):
        hourly = _day(2000, 1, 1)
        quarter = hourly.shifted(-hourly.dt_seconds + 900).with_dt(900)
        assert len(quarter) == 4 * len(hourly)
        assert quarter.start == pd.Timestamp(1999, 12, 31, 23, 15)

    def test_rejects_non_positive_step(self):
        with pytest.raises(ValueError):
            TimeRange(pd.Timestamp(2000, 1, 1), pd.Timestamp(2000, 1, 2), 0)

    def test_empty(self):
        assert len(TimeRange(pd.Timestamp(2000, 1, 2), pd.Timestamp(2000, 1, 1), 3600)) == 0


class TestExtraTerrestrialRadiation:
    def test_returns_dataarray(self):
        radiation = extra_terrestrial_radiation_backwards(52, 7, _day(2000, 6, 21))
        assert radiation.dims == ("time",)
        assert radiation.dtype == np.float32
        assert radiation.attrs["units"] == "W m-2"
        assert len(radiation) == 24

    def test_bounds(self):
        radiation = extra_terrestrial_radiation_backwards(52, 7, TimeRange(pd.Timestamp(2000, 1, 1), pd.Timestamp(2001, 1, 1), 3600))
        assert float(radiation.min()) == 0
        assert float(radiation.max()) <= SOLAR_CONSTANT * 1.035

    def test_night_and_noon(self):
        radiation = extra_terrestrial_radiation_backwards(52, 0, _day(2000, 6, 21)).values
        # 23:00 to 00:00 UTC is night, 11:00 to 12:00 UTC is close to solar noon
        assert radiation[0] == 0
        assert 1000 < radiation[12] < 1300
        assert radiation.argmax() in (12, 13)

    def test_polar_night(self):
        radiation = extra_terrestrial_radiation_backwards(80, 0, _day(2000, 12, 21)).values
        assert np.all(radiation == 0)

    def test_polar_day(self):
        radiation = extra_terrestrial_radiation_backwards(80, 0, _day(2000, 6, 21)).values
        assert np.all(radiation > 0)

    def test_quarter_hours_average_to_hour(self):
        hourly = _day(2000, 3, 20)
        quarter = hourly.shifted(-hourly.dt_seconds + 900).with_dt(900)

        coarse = extra_terrestrial_radiation_backwards(52, 7, hourly).values
        fine = extra_terrestrial_radiation_backwards(52, 7, quarter).values

        np.testing.assert_allclose(fine.reshape(-1, 4).mean(axis=1), coarse, atol=1.0)

    def test_invalid_latitude(self):
        with pytest.raises(ValueError):
            extra_terrestrial_radiation_backwards(95, 7, _day(2000, 1, 1))


class TestInterpolate:
    def test_solar_backwards_averaged_preserves_extraterrestrial_shape(self):
        hourly = TimeRange(pd.Timestamp(2000, 6, 1), pd.Timestamp(2000, 6, 8), 3600)
        quarter = hourly.shifted(-hourly.dt_seconds + 900).with_dt(900)
        radiation = extra_terrestrial_radiation_backwards(52, 7, hourly)

        result = interpolate(radiation, InterpolationType.SOLAR_BACKWARDS_AVERAGED, hourly, quarter, 52, 7, 100)

        expected = extra_terrestrial_radiation_backwards(52, 7, quarter).values
        assert len(result) == len(quarter)
        np.testing.assert_allclose(result.values, expected, atol=0.05)

    def test_solar_backwards_averaged_scales_clearness(self):
        hourly = TimeRange(pd.Timestamp(2000, 6, 1), pd.Timestamp(2000, 6, 3), 3600)
        quarter = hourly.shifted(-hourly.dt_seconds + 900).with_dt(900)
        radiation = extra_terrestrial_radiation_backwards(52, 7, hourly) * 0.5

        result = interpolate(radiation, "solar_backwards_averaged", hourly, quarter, 52, 7, 100)

        expected = extra_terrestrial_radiation_backwards(52, 7, quarter).values * 0.5
        np.testing.assert_allclose(result.values, expected, atol=0.05)

    def test_rounds_to_scalefactor(self):
        hourly = _day(2000, 6, 21)
        quarter = hourly.shifted(-hourly.dt_seconds + 900).with_dt(900)
        radiation = extra_terrestrial_radiation_backwards(52, 7, hourly)

        result = interpolate(radiation, InterpolationType.SOLAR_BACKWARDS_AVERAGED, hourly, quarter, 52, 7, 1)

        np.testing.assert_array_equal(result.values, np.round(result.values))

    def test_linear(self):
        hourly = TimeRange(pd.Timestamp(2000, 1, 1), pd.Timestamp(2000, 1, 1, 3), 3600)
        half = hourly.with_dt(1800)

        result = interpolate(np.array([0.0, 10.0, 20.0]), InterpolationType.LINEAR, hourly, half, 0, 0, 100)

        np.testing.assert_allclose(result.values, [0, 5, 10, 15, 20, 20])

    def test_backwards_holds_covering_value(self):
        hourly = TimeRange(pd.Timestamp(2000, 1, 1), pd.Timestamp(2000, 1, 1, 2), 3600)
        quarter = hourly.shifted(-hourly.dt_seconds + 900).with_dt(900)

        result = interpolate(np.array([1.0, 2.0]), InterpolationType.BACKWARDS, hourly, quarter, 0, 0, 100)

        np.testing.assert_array_equal(result.values, [1, 1, 1, 1, 2, 2, 2, 2])

    def test_time_coordinate(self):
        hourly = _day(2000, 1, 1)
        quarter = hourly.shifted(-hourly.dt_seconds + 900).with_dt(900)
        result = interpolate(np.zeros(24), InterpolationType.LINEAR, hourly, quarter, 0, 0, 100)
        assert result["time"].values[0] == np.datetime64("1999-12-31T23:15")

    def test_shape_mismatch(self):
        hourly = _day(2000, 1, 1)
        with pytest.raises(ValueError, match="shape"):
            interpolate(np.zeros(5), InterpolationType.LINEAR, hourly, hourly, 0, 0, 100)

    def test_unknown_kind(self):
        hourly = _day(2000, 1, 1)
        with pytest.raises(ValueError):
            interpolate(np.zeros(24), "cubic", hourly, hourly, 0, 0, 100)
