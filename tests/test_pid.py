import math

import pytest

from pid import PIDController, PIDGains, PIDState, compute

DT = 0.01


class TestCompute:
    def test_first_step_derivative_is_error_over_dt(self):
        r = compute(1.0, 0.0, 0.0, PIDState(), PIDGains(), DT)
        assert r.error == 1.0
        assert r.derivative_error == pytest.approx(1.0 / DT)
        assert r.derivative_error == 100.0

    def test_first_step_output_with_default_gains(self):
        r = compute(1.0, 0.0, 0.0, PIDState(), PIDGains(), DT)
        assert r.state.integral_error == 0.01
        assert r.output == 4609.518022

    def test_disturbance_is_added_to_error(self):
        r = compute(1.0, 0.25, 0.5, PIDState(), PIDGains(1.0, 0.0, 0.0), DT)
        assert r.error == pytest.approx(1.25)
        assert r.output == pytest.approx(1.25)

    def test_state_carries_integral_and_last_error(self):
        gains = PIDGains(0.0, 1.0, 0.0)
        r1 = compute(1.0, 0.0, 0.0, PIDState(), gains, DT)
        r2 = compute(1.0, 0.5, 0.0, r1.state, gains, DT)
        assert r2.state.integral_error == pytest.approx(0.01 + 0.005)
        assert r2.state.last_error == 0.5
        assert r2.derivative_error == pytest.approx((0.5 - 1.0) / DT)
        assert r2.output == pytest.approx(0.015)

    def test_zero_gains_give_zero_output(self):
        r = compute(0.0, 0.0, 0.0, PIDState(), PIDGains(0.0, 0.0, 0.0), DT)
        assert r.output == 0.0

    def test_zero_dt_is_not_guarded(self):
        r = compute(1.0, 0.0, 0.0, PIDState(), PIDGains(), 0.0)
        assert math.isinf(r.derivative_error)
        assert math.isinf(r.output)

    def test_input_state_unchanged(self):
        s = PIDState(0.3, 0.2)
        compute(1.0, 0.0, 0.0, s, PIDGains(), DT)
        assert s == PIDState(0.3, 0.2)


class TestPIDController:
    def test_update_tracks_state(self):
        c = PIDController(PIDGains(1.0, 1.0, 0.0), dt=DT)
        c.update(1.0, 0.0)
        c.update(1.0, 0.0)
        assert c.state.integral_error == pytest.approx(0.02)
        assert c.state.last_error == 1.0

    def test_reset(self):
        c = PIDController(dt=DT)
        c.update(1.0, 0.0)
        c.reset()
        assert c.state == PIDState()
        # derivative kick comes back after a reset
        assert c.update(1.0, 0.0).derivative_error == 100.0
