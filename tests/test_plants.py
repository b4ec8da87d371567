"""
Unit tests for plant simulators.

Tests verify:
1. Parameter uncertainty bounds and statistics
2. Equations of motion and equilibria
3. Measurement noise statistics
4. Determinism under identical seeds
5. Error taxonomy and configuration validation
"""

import copy
import json
import pickle
import threading
import numpy as np
import pytest
import sys
import os

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from models.parameters import RandomizedParameterSet, spawn_generators
from models.config import PlantConfig, load_config
from models.errors import (InvalidConfigurationError, NonFiniteStateError,
                           SimulationError, SingularDynamicsError)
from models.integrator import Scheme
from models.pendulum import CartPendulum
from models.satellite import Satellite


class TestRandomizedParameterSet:
    """Tests for parameter perturbation."""

    nominal = {'m1': 0.25, 'm2': 1.0, 'ell': 0.5, 'b': 0.05, 'g': 9.8}

    def test_within_bounds(self):
        """Realized values lie within nominal * [1 - alpha, 1 + alpha]."""
        rng = np.random.default_rng(0)
        for alpha in (0.05, 0.2, 0.9):
            for _ in range(200):
                p = RandomizedParameterSet(self.nominal, alpha=alpha, rng=rng)
                for name, nom in self.nominal.items():
                    assert nom * (1 - alpha) <= p[name] <= nom * (1 + alpha)

    def test_sample_mean_converges(self):
        """Mean over many draws approaches the nominal value."""
        rng = np.random.default_rng(1)
        draws = [RandomizedParameterSet({'m': 2.0}, alpha=0.2, rng=rng)['m']
                 for _ in range(20000)]
        assert abs(np.mean(draws) - 2.0) < 0.01

    def test_exempt_unchanged(self):
        """Exempt parameters pass through exactly."""
        rng = np.random.default_rng(2)
        for _ in range(50):
            p = RandomizedParameterSet(self.nominal, alpha=0.2, exempt=('g',), rng=rng)
            assert p.g == 9.8

    def test_zero_alpha(self):
        """alpha = 0 reproduces the nominal values."""
        p = RandomizedParameterSet(self.nominal, alpha=0.0)
        assert dict(p) == self.nominal
        assert all(v == 0.0 for v in p.perturbation().values())

    def test_attribute_and_item_access(self):
        p = RandomizedParameterSet(self.nominal, alpha=0.0)
        assert p.m1 == p['m1'] == 0.25
        assert len(p) == 5
        with pytest.raises(AttributeError):
            p.mass

    def test_immutable(self):
        """Parameters cannot be changed after construction."""
        p = RandomizedParameterSet(self.nominal, alpha=0.1)
        with pytest.raises(AttributeError):
            p.m1 = 1.0
        with pytest.raises(TypeError):
            p['m1'] = 1.0
        with pytest.raises(AttributeError):
            del p.m1

    def test_nominal_is_copy(self):
        p = RandomizedParameterSet(self.nominal, alpha=0.1, rng=np.random.default_rng(0))
        p.nominal['m1'] = 100.0
        assert p.nominal['m1'] == 0.25

    def test_pickle_round_trip(self):
        """Realized values survive pickling and stay immutable."""
        p = RandomizedParameterSet(self.nominal, alpha=0.2, exempt=('g',),
                                   rng=np.random.default_rng(3))
        q = pickle.loads(pickle.dumps(p))

        assert dict(q) == dict(p)
        assert q.nominal == p.nominal
        assert q.perturbation() == p.perturbation()
        assert q.m1 == p.m1
        with pytest.raises(AttributeError):
            q.m1 = 1.0

    def test_spawn_generators_independent(self):
        """Spawned generators are reproducible and distinct."""
        a = [g.uniform() for g in spawn_generators(5, 3)]
        b = [g.uniform() for g in spawn_generators(5, 3)]
        assert a == b
        assert len(set(a)) == 3


class TestCartPendulum:
    """Tests for the cart-pendulum plant."""

    def test_equations_of_motion_at_rest(self):
        """Unit force on the cart at rest, upright."""
        plant = CartPendulum(CartPendulum.default_config(uncertainty_alpha=0.0))
        xdot = plant.f(np.zeros(4), np.array([1.0]))

        np.testing.assert_allclose(xdot, [0.0, 0.0, 16.0 / 17.0, -48.0 / 17.0])

    def test_derivative_ordering(self):
        """Rates of positions are the state velocities."""
        plant = CartPendulum(seed=0)
        x = np.array([0.1, 0.2, 0.3, 0.4])
        xdot = plant.f(x, np.array([0.0]))
        np.testing.assert_array_equal(xdot[:2], x[2:])

    def test_falls_away_from_upright(self):
        """Gravity accelerates a tilted rod further from vertical."""
        plant = CartPendulum(seed=0)
        xdot = plant.f(np.array([0.0, 0.1, 0.0, 0.0]), np.array([0.0]))
        assert xdot[3] > 0.0

    def test_end_to_end_rest(self):
        """Nominal pendulum at rest with zero force stays at rest for 100 steps."""
        config = PlantConfig(
            params={'m1': 0.25, 'm2': 1.0, 'ell': 0.5, 'b': 0.05, 'g': 9.8},
            initial_state=[0.0, 0.0, 0.0, 0.0],
            Ts=0.01, scheme='RK4', uncertainty_alpha=0.0)
        plant = CartPendulum(config, seed=0)

        for _ in range(100):
            plant.update(0.0)

        np.testing.assert_allclose(plant.state, np.zeros(4), atol=1e-9)
        assert plant.steps == 100
        assert plant.time == pytest.approx(1.0)

    @pytest.mark.parametrize('scheme', list(Scheme))
    def test_fixed_point_with_uncertainty(self, scheme):
        """Upright rest is an equilibrium for any parameter draw."""
        plant = CartPendulum(CartPendulum.default_config(scheme=scheme), seed=3)
        for _ in range(500):
            plant.update(0.0)
        np.testing.assert_allclose(plant.state, np.zeros(4), atol=1e-9)

    def test_energy_conserved_without_damping(self):
        """With b = 0 and F = 0 the RK4 trajectory conserves energy."""
        config = CartPendulum.default_config(b=0.0, uncertainty_alpha=0.0, Ts=0.001)
        config = config.with_overrides(initial_state=(0.0, 0.3, 0.0, 0.0))
        plant = CartPendulum(config)

        E0 = plant.energy()
        for _ in range(1000):
            plant.update(0.0)

        assert abs(plant.energy() - E0) < 1e-6
        assert abs(plant.state[1]) > 0.3

    def test_measurement_shape(self):
        plant = CartPendulum(seed=0)
        y = plant.update(1.0)
        assert y.shape == (2,)

    def test_parameters_drawn_once(self):
        """Parameters do not change between updates."""
        plant = CartPendulum(seed=4)
        before = dict(plant.params)
        for _ in range(10):
            plant.update(0.5)
        assert dict(plant.params) == before

    def test_gravity_not_perturbed(self):
        plant = CartPendulum(seed=5)
        assert plant.params.g == 9.8
        assert plant.params.m1 != 0.25

    def test_state_is_copy(self):
        """Callers cannot mutate the plant through the state property."""
        plant = CartPendulum(seed=0)
        x = plant.state
        x[0] = 100.0
        assert plant.state[0] == 0.0

    @pytest.mark.parametrize('clone', [
        copy.deepcopy,
        lambda plant: pickle.loads(pickle.dumps(plant)),
    ])
    def test_snapshot_continues_identically(self, clone):
        """A copied plant carries parameters, state and generator state."""
        config = CartPendulum.default_config().with_overrides(
            initial_state=(0.0, 0.05, 0.0, 0.0))
        plant = CartPendulum(config, seed=21)
        for _ in range(10):
            plant.update(0.2)

        twin = clone(plant)
        assert dict(twin.params) == dict(plant.params)
        assert twin.steps == plant.steps

        for _ in range(20):
            y = plant.update(-0.1)
            y_twin = twin.update(-0.1)
            assert np.array_equal(y, y_twin)
        assert np.array_equal(twin.state, plant.state)


class TestSatellite:
    """Tests for the satellite plant."""

    def test_equations_of_motion(self):
        """Spring torque between body and panel."""
        plant = Satellite(Satellite.default_config(uncertainty_alpha=0.0))
        xdot = plant.f(np.array([1.0, 0.0, 0.0, 0.0]), np.array([0.0]))
        np.testing.assert_allclose(xdot, [0.0, 0.0, -0.15 / 5.0, 0.15 / 1.0])

    def test_linearize_exact_for_linear_plant(self):
        """Numerical Jacobians match the analytic state-space model."""
        plant = Satellite(Satellite.default_config(uncertainty_alpha=0.0))
        A, B = plant.linearize()

        Js, Jp, k, b = 5.0, 1.0, 0.15, 0.05
        A_expected = np.array([[0, 0, 1, 0],
                               [0, 0, 0, 1],
                               [-k / Js, k / Js, -b / Js, b / Js],
                               [k / Jp, -k / Jp, b / Jp, -b / Jp]])
        B_expected = np.array([[0], [0], [1 / Js], [0]])

        np.testing.assert_allclose(A, A_expected, atol=1e-6)
        np.testing.assert_allclose(B, B_expected, atol=1e-6)

    @pytest.mark.parametrize('scheme', list(Scheme))
    def test_angular_momentum_conserved(self, scheme):
        """Unforced motion keeps total angular momentum (a linear invariant)."""
        config = Satellite.default_config(scheme=scheme).with_overrides(
            initial_state=(0.1, -0.2, 0.05, 0.3))
        plant = Satellite(config, seed=6)

        L0 = plant.angular_momentum()
        for _ in range(500):
            plant.update(0.0)

        assert abs(plant.angular_momentum() - L0) < 1e-12

    def test_aligned_rest_is_equilibrium(self):
        config = Satellite.default_config().with_overrides(initial_state=(0.3, 0.3, 0.0, 0.0))
        plant = Satellite(config, seed=7)
        for _ in range(200):
            plant.update(0.0)
        np.testing.assert_allclose(plant.state, [0.3, 0.3, 0.0, 0.0], atol=1e-12)


class TestMeasurementNoise:
    """Statistics of the measurement model."""

    N = 10000

    @pytest.mark.parametrize('plant_cls', [CartPendulum, Satellite])
    def test_noise_statistics(self, plant_cls):
        """Per-channel std matches configuration within 5%, mean near zero."""
        config = plant_cls.default_config().with_overrides(
            initial_state=(0.4, -0.1, 0.0, 0.0))
        plant = plant_cls(config, seed=8)

        truth = plant.outputs(plant.state)
        noise = np.array([plant.h() for _ in range(self.N)]) - truth
        std = np.array(plant.noise_std)

        np.testing.assert_allclose(noise.std(axis=0, ddof=1), std, rtol=0.05)
        assert np.all(np.abs(noise.mean(axis=0)) < 4 * std / np.sqrt(self.N))

    def test_fresh_draw_each_call(self):
        """Consecutive measurements are uncorrelated."""
        plant = CartPendulum(seed=9)
        noise = np.array([plant.h() for _ in range(self.N)])[:, 0]
        corr = np.corrcoef(noise[:-1], noise[1:])[0, 1]
        assert abs(corr) < 0.05


class TestDeterminism:
    """Identical seeds reproduce parameters, trajectories and measurements."""

    def test_identical_runs(self):
        config = CartPendulum.default_config().with_overrides(
            initial_state=(0.0, 0.05, 0.0, 0.0))
        a = CartPendulum(config, seed=123)
        b = CartPendulum(config, seed=123)

        assert dict(a.params) == dict(b.params)

        ya, yb = [], []
        for k in range(50):
            u = 0.1 * np.sin(0.1 * k)
            ya.append(a.update(u))
            yb.append(b.update(u))

        assert np.array_equal(a.state, b.state)
        assert np.array_equal(np.array(ya), np.array(yb))

    def test_injected_generators(self):
        """Plants built from spawned generators match when re-spawned."""
        rngs_a = spawn_generators(11, 2)
        rngs_b = spawn_generators(11, 2)
        a = [Satellite(rng=r) for r in rngs_a]
        b = [Satellite(rng=r) for r in rngs_b]
        assert [dict(p.params) for p in a] == [dict(p.params) for p in b]
        assert dict(a[0].params) != dict(a[1].params)

    def test_parallel_plants_match_serial(self):
        """Plants stepped in separate threads reproduce the serial trajectories."""
        n_plants, n_steps = 6, 300
        config = CartPendulum.default_config().with_overrides(
            initial_state=(0.0, 0.05, 0.0, 0.0))

        def simulate(plant, out):
            for k in range(n_steps):
                y = plant.update(0.2 * np.sin(0.05 * k))
                out.append(np.concatenate([y, plant.state]))

        serial = []
        for rng in spawn_generators(31, n_plants):
            trace = []
            simulate(CartPendulum(config, rng=rng), trace)
            serial.append(trace)

        parallel = [[] for _ in range(n_plants)]
        plants = [CartPendulum(config, rng=rng) for rng in spawn_generators(31, n_plants)]
        threads = [threading.Thread(target=simulate, args=(plant, trace))
                   for plant, trace in zip(plants, parallel)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        for a, b in zip(serial, parallel):
            assert len(a) == len(b) == n_steps
            assert np.array_equal(np.array(a), np.array(b))

    def test_different_seeds_differ(self):
        assert dict(CartPendulum(seed=1).params) != dict(CartPendulum(seed=2).params)


class TestErrors:
    """Fatal numerical failures propagate with context."""

    def test_singular_mass_matrix(self):
        """A massless rod makes the mass matrix singular."""
        config = CartPendulum.default_config(m1=0.0, uncertainty_alpha=0.0)
        plant = CartPendulum(config)

        with pytest.raises(SingularDynamicsError) as excinfo:
            plant.update(1.0)

        err = excinfo.value
        assert err.plant == 'cart_pendulum'
        assert err.step == 0
        assert err.time == 0.0
        assert 'cart_pendulum' in str(err)
        np.testing.assert_array_equal(plant.state, np.zeros(4))
        assert plant.steps == 0

    def test_non_finite_input(self):
        """NaN input is reported and the state is left untouched."""
        plant = Satellite(seed=0)
        plant.update(0.1)
        before = plant.state

        with pytest.raises(NonFiniteStateError) as excinfo:
            plant.update(np.nan)

        assert excinfo.value.step == 1
        assert isinstance(excinfo.value, SimulationError)
        np.testing.assert_array_equal(plant.state, before)
        assert plant.steps == 1

    @pytest.mark.parametrize('u', [[], [1.0, 5.0], np.zeros((1, 1))])
    def test_wrong_input_dimension(self, u):
        """Inputs must have exactly n_inputs entries; the state is left untouched."""
        plant = CartPendulum(seed=0)
        plant.update(0.1)
        before = plant.state

        with pytest.raises(ValueError, match='cart_pendulum'):
            plant.update(u)

        np.testing.assert_array_equal(plant.state, before)
        assert plant.steps == 1

    def test_overflow_detected(self):
        """A step that overflows the state is rejected before it is committed."""
        config = Satellite.default_config(uncertainty_alpha=0.0, Ts=1e10, scheme='RK1')
        plant = Satellite(config)
        with np.errstate(over='ignore'):
            with pytest.raises(NonFiniteStateError):
                plant.update(1e300)
        np.testing.assert_array_equal(plant.state, np.zeros(4))
        assert plant.steps == 0


class TestConfiguration:
    """Validation of plant configurations."""

    def test_missing_parameter(self):
        config = PlantConfig(params={'m1': 0.25, 'm2': 1.0},
                             initial_state=[0, 0, 0, 0])
        with pytest.raises(InvalidConfigurationError, match='ell') as excinfo:
            CartPendulum(config)
        assert str(excinfo.value).startswith('cart_pendulum:')

    def test_hashable(self):
        """Equal configurations hash equally and can key a dict."""
        a = CartPendulum.default_config(m2=2.0)
        b = CartPendulum.default_config(m2=2.0)
        assert a == b
        assert hash(a) == hash(b)
        assert len({a: 'x', b: 'y'}) == 1
        assert CartPendulum.default_config() not in {a}

    def test_wrong_state_dimension(self):
        config = CartPendulum.default_config().with_overrides(initial_state=(0.0, 0.0))
        with pytest.raises(InvalidConfigurationError, match='dimension'):
            CartPendulum(config)

    @pytest.mark.parametrize('changes', [
        {'Ts': 0.0},
        {'Ts': -0.01},
        {'uncertainty_alpha': 1.0},
        {'uncertainty_alpha': -0.1},
        {'scheme': 'RK3'},
        {'m1': float('nan')},
        {'initial_state': (0.0, float('inf'), 0.0, 0.0)},
        {'initial_state': ()},
    ])
    def test_malformed(self, changes):
        with pytest.raises(InvalidConfigurationError):
            CartPendulum.default_config(**changes)

    def test_is_value_error(self):
        with pytest.raises(ValueError):
            PlantConfig(params={}, initial_state=['x'])

    def test_from_dict(self):
        config = PlantConfig.from_dict({
            'params': {'Js': 5.0, 'Jp': 1.0, 'k': 0.15, 'b': 0.05},
            'initial_state': [0.1, 0.0, 0.0, 0.0],
            'Ts': 0.02,
            'scheme': 'rk2',
        })
        assert config.scheme is Scheme.RK2
        assert config.Ts == 0.02
        assert config.uncertainty_alpha == 0.2

        plant = Satellite(config, seed=0)
        assert plant.state[0] == 0.1

    def test_from_dict_rejects_bad_keys(self):
        with pytest.raises(InvalidConfigurationError):
            PlantConfig.from_dict({'params': {}})
        with pytest.raises(InvalidConfigurationError):
            PlantConfig.from_dict({'params': {}, 'initial_state': [0.0], 'dt': 0.1})

    def test_load_config(self, tmp_path):
        """JSON round trip through load_config."""
        config = CartPendulum.default_config(m2=2.0, scheme='RK1')
        path = tmp_path / 'pendulum.json'
        path.write_text(json.dumps(config.to_dict()))

        loaded = load_config(path)
        assert loaded == config
        assert loaded.params['m2'] == 2.0

    def test_load_config_malformed_json(self, tmp_path):
        path = tmp_path / 'broken.json'
        path.write_text('{"params": ')
        with pytest.raises(InvalidConfigurationError):
            load_config(path)


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
