import textwrap

import pytest

from config import DEFAULT_GAINS, SimulationSettings, load_settings
from motor import DCMotorParams
from simulation import SimulationMode


def write_toml(tmp_path, body):
    path = tmp_path / "sim.toml"
    path.write_text(textwrap.dedent(body), encoding="utf-8")
    return str(path)


class TestLoadSettings:
    def test_defaults(self):
        s = load_settings()
        assert s == SimulationSettings()
        assert s.dt == 0.01
        assert s.duration == 100.0
        assert s.window == 100
        assert s.mode is SimulationMode.CONTINUOUS
        assert s.motor == DCMotorParams(0.01, 0.1, 0.01, 1.0, 0.5)
        assert s.inputs.gains == DEFAULT_GAINS
        assert s.inputs.target == 1.0
        assert s.inputs.disturbance == 0.0

    def test_overrides(self, tmp_path):
        path = write_toml(tmp_path, """
            [motor]
            L = 0.25

            [pid]
            kp = 10

            [simulation]
            mode = "MATLAB"
            target = 2.0
            disturbance = 0.1
            duration = 5
        """)
        s = load_settings(path)
        assert s.motor.L == 0.25
        assert s.motor.J == 0.01
        assert s.inputs.gains.kp == 10.0
        assert s.inputs.gains.ki == DEFAULT_GAINS.ki
        assert s.mode is SimulationMode.MATLAB
        assert s.inputs.target == 2.0
        assert s.inputs.disturbance == 0.1
        assert s.duration == 5.0
        assert s.dt == 0.01

    def test_unknown_mode(self, tmp_path):
        path = write_toml(tmp_path, """
            [simulation]
            mode = "realtime"
        """)
        with pytest.raises(ValueError, match="realtime"):
            load_settings(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(OSError):
            load_settings(str(tmp_path / "nope.toml"))
