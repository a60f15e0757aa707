import math

import pytest

from export import CSV_HEADER, debug_to_csv, format_number, write_debug_csv
from motor import DCMotorParams
from pid import PIDGains
from simulation import DebugSample, SimulationInputs, run_batch


@pytest.fixture(scope="module")
def short_run():
    return run_batch(DCMotorParams(), SimulationInputs(), duration=0.05)


class TestFormatNumber:
    @pytest.mark.parametrize("value, text", [
        (0.0, "0"),
        (-0.0, "0"),
        (1.0, "1"),
        (100.0, "100"),
        (-2.5, "-2.5"),
        (0.01, "0.01"),
        (0.009219036044000001, "0.009219036044000001"),
        (5e-05, "0.00005"),
        (1.25e-06, "0.00000125"),
        (1e-07, "1e-7"),
        (-1.5e-07, "-1.5e-7"),
        (1e20, "100000000000000000000"),
        (float(2 ** 53), "9007199254740992"),
        (float(2 ** 60), "1152921504606847000"),
        (18449413758253248.0, "18449413758253250"),
        (-18449413758253248.0, "-18449413758253250"),
        (1e21, "1e+21"),
        (math.nan, "NaN"),
        (math.inf, "Infinity"),
        (-math.inf, "-Infinity"),
    ])
    def test_rendering(self, value, text):
        assert format_number(value) == text


class TestCsv:
    def test_header_and_first_rows(self, short_run):
        lines = debug_to_csv(short_run.debug).split("\n")
        assert lines[0] == CSV_HEADER
        assert lines[1] == "0,0,1,1,0.01,100,4609.518022,92.19036044,0"
        assert lines[2] == ("0.01,0.009219036044000001,1,1,0.02,0,62.136044,"
                            "91.58927411120001,0.9219036044000001")

    def test_one_row_per_sample_nine_fields(self, short_run):
        text = debug_to_csv(short_run.debug)
        lines = text.split("\n")
        assert len(lines) == 1 + len(short_run.debug)
        assert not text.endswith("\n")
        for line in lines:
            assert len(line.split(",")) == 9

    def test_header_field_order(self):
        assert CSV_HEADER.split(",") == [
            "Time", "Angle", "Target", "Error", "IntegralError",
            "DerivativeError", "PIDOutput", "Current", "Velocity",
        ]
        assert len(DebugSample._fields) == 9

    def test_empty_trail_is_header_only(self):
        assert debug_to_csv([]) == CSV_HEADER

    def test_write(self, tmp_path, short_run):
        path = write_debug_csv(tmp_path / "debug_data.csv", short_run.debug)
        assert path.read_text(encoding="utf-8") == debug_to_csv(short_run.debug)

    def test_diverging_run_renders_large_values(self):
        unstable = SimulationInputs(gains=PIDGains(-60.54, 79.8022, 45.4818))
        lines = debug_to_csv(run_batch(DCMotorParams(), unstable).debug).split("\n")
        assert lines[1 + 6526] == (
            "65.26,328138246082955,1,-315335418822972.56,715933285699427.5,"
            "-1270267310206112.5,18449413758253250,13798864609342258,1280282725998144.8"
        )
        assert lines[-1] == (
            "99.99000000000001,-5.611059074453191e+22,1,5.3404698445527214e+22,"
            "-1.6263805248014317e+23,2.683023433951158e+23,-4.0091213136951193e+24,"
            "-2.933606608602074e+24,-2.7058922990046997e+23"
        )
