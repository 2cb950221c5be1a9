import math
import threading
import pytest
import torch

from mcrates import (
    CalculationException,
    ForwardCurveFromDiscountCurve,
    HullWhiteModel,
    PathwiseValue,
    ProcessNotAssignedError,
    ShortRateVolatilityModelPiecewiseConstant,
    TimeGrid,
    UnsupportedOperationError,
)


class TestHullWhiteModel:
    """Tests for the Hull-White short rate model on a flat curve."""

    @pytest.fixture
    def model(self, make_model):
        return make_model()

    @pytest.fixture
    def simulation(self, model, make_simulation):
        return make_simulation(model, num_paths=20000, seed=271)

    def test_zero_coupon_bonds_at_time_zero_match_the_curve(self, simulation, discount_curve, time_grid):
        for maturity in time_grid:
            bond = simulation.get_zero_coupon_bond(0.0, maturity)
            assert bond.average().item() == pytest.approx(discount_curve.get_discount_factor(maturity), rel=1e-12)

    def test_inverse_numeraire_reprices_the_curve(self, simulation, discount_curve, time_grid):
        for time in time_grid:
            inverse_numeraire = simulation.get_numeraire(time).invert()
            assert inverse_numeraire.average().item() == pytest.approx(
                discount_curve.get_discount_factor(time), rel=1e-10)

    @pytest.mark.parametrize("time, maturity", [(1.0, 3.0), (2.0, 5.0), (4.0, 10.0)])
    def test_discounted_bonds_are_martingales(self, simulation, discount_curve, time, maturity):
        discounted = simulation.get_zero_coupon_bond(time, maturity) / simulation.get_numeraire(time)
        error = abs(discounted.average().item() - discount_curve.get_discount_factor(maturity))
        assert error < 4.0 * discounted.standard_error().item() + 5e-4

    def test_libor_at_time_zero_is_the_forward(self, simulation, discount_curve):
        libor = simulation.get_libor(0.0, 1.0, 2.0)
        expected = discount_curve.get_discount_factor(1.0) / discount_curve.get_discount_factor(2.0) - 1.0
        assert libor.average().item() == pytest.approx(expected, rel=1e-10)

    def test_libor_for_period_uses_the_period_grid(self, model, simulation, time_grid):
        libor = model.get_libor_for_period(time_grid.index_of(1.0), 2)
        assert torch.allclose(libor.values, simulation.get_libor(1.0, 2.0, 3.0).values)
        assert model.get_number_of_libors() == 6
        assert model.get_libor_period(2) == 2.0
        assert model.get_libor_period_index(2.5).previous == 2

    def test_off_grid_numeraire_accrues_from_previous_grid_time(self, model, simulation, time_grid):
        previous = model.get_numeraire(2.0)
        short_rate = simulation.get_process_value(time_grid.index_of(2.0), 0)
        expected = previous * (short_rate * 0.1).exp()
        assert torch.allclose(model.get_numeraire(2.1).values, expected.values)

    def test_numeraire_at_start_is_one(self, model, simulation):
        numeraire = model.get_numeraire(0.0)
        assert numeraire.is_deterministic()
        assert numeraire.average().item() == 1.0

    def test_bond_formula_components(self, model, simulation, discount_curve):
        a = 0.1
        assert model.B(1.0, 1.0).item() == 0.0
        assert model.B(1.0, 3.0).item() == pytest.approx((1.0 - math.exp(-2.0 * a)) / a)
        assert model.get_integrated_bond_squared_volatility(1.0, 3.0).item() == pytest.approx(
            model.get_short_rate_conditional_variance(0.0, 1.0).item() * model.B(1.0, 3.0).item() ** 2)
        bond = model.get_zero_coupon_bond(2.0, 2.0)
        assert torch.allclose(bond.values, torch.ones_like(bond.values))

    def test_numeraire_cache_follows_the_bound_engine(self, model, make_simulation):
        first = make_simulation(model, num_paths=1000, seed=1)
        numeraire_first = model.get_numeraire(3.0).values.clone()

        make_simulation(model, num_paths=1000, seed=2)
        numeraire_second = model.get_numeraire(3.0).values.clone()
        assert not torch.equal(numeraire_first, numeraire_second)

        # Rebinding the first engine recomputes its numeraires
        model.set_process(first.get_process())
        assert torch.equal(model.get_numeraire(3.0).values, numeraire_first)

    def test_numeraire_cache_is_populated_incrementally(self, model, simulation):
        later = model.get_numeraire(4.0)
        earlier = model.get_numeraire(2.0)
        assert set(range(1, 17)) <= set(model._numeraires)
        assert (earlier.values < later.values).float().mean().item() > 0.5

    def test_numeraire_continues_from_the_last_integrated_index(self, model, simulation, monkeypatch):
        model.get_numeraire(4.0)
        assert model._integrated_index == 16

        calls = []
        get_short_rate = model.get_short_rate
        monkeypatch.setattr(model, "get_short_rate", lambda i: calls.append(i) or get_short_rate(i))
        model.get_numeraire(5.0)
        assert calls == [16, 17, 18, 19]

        calls.clear()
        model.get_numeraire(3.0)
        assert calls == []

    def test_adjusted_numeraire_is_cached(self, model, simulation):
        first = model.get_numeraire(3.0)
        assert model.get_numeraire(3.0) is first
        assert set(model._adjusted_numeraires) == {12}

    def test_concurrent_numeraire_requests(self, make_model, make_simulation):
        model = make_model()
        make_simulation(model, num_paths=5000, seed=17)
        reference_model = make_model()
        make_simulation(reference_model, num_paths=5000, seed=17)
        expected = reference_model.get_numeraire(5.0).values

        barrier = threading.Barrier(8)
        results = [None] * 8

        def worker(i):
            barrier.wait()
            results[i] = model.get_numeraire(5.0).values

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert all(torch.equal(result, expected) for result in results)

    def test_forward_curve_defines_the_initial_term_structure(self, libor_grid, analytic_model, discount_curve,
                                                              make_simulation):
        model = HullWhiteModel.with_constant_coefficients(
            libor_grid, analytic_model, ForwardCurveFromDiscountCurve(discount_curve, 0.25), discount_curve,
            mean_reversion=0.1, volatility=0.01)
        simulation = make_simulation(model, num_paths=1000)
        for maturity in [0.25, 1.0, 3.0, 5.75]:
            bond = simulation.get_zero_coupon_bond(0.0, maturity)
            assert bond.average().item() == pytest.approx(discount_curve.get_discount_factor(maturity), rel=1e-10)

    def test_piecewise_model_matches_constant_model(self, libor_grid, analytic_model, discount_curve,
                                                    make_model, make_simulation, time_grid):
        volatility_model = ShortRateVolatilityModelPiecewiseConstant(
            TimeGrid([0.0, 1.0, 2.0, 3.0]), [0.01] * 4, [0.1] * 4)
        piecewise = HullWhiteModel(libor_grid, analytic_model, None, discount_curve, volatility_model)
        constant = make_model()
        make_simulation(piecewise, num_paths=500, seed=5)
        make_simulation(constant, num_paths=500, seed=5)
        last = time_grid.number_of_times - 1
        assert torch.allclose(piecewise.get_short_rate(last).values, constant.get_short_rate(last).values,
                              rtol=1e-10, atol=1e-14)

    def test_errors(self, model, make_simulation, libor_grid, analytic_model):
        with pytest.raises(ProcessNotAssignedError):
            model.get_numeraire(1.0)

        make_simulation(model, num_paths=100)
        with pytest.raises(CalculationException):
            model.get_numeraire(6.5)
        with pytest.raises(CalculationException):
            model.get_numeraire(-0.5)
        with pytest.raises(CalculationException):
            model.get_zero_coupon_bond(2.0, 1.0)
        with pytest.raises(CalculationException):
            model.get_zero_coupon_bond(0.3, 2.0)
        with pytest.raises(UnsupportedOperationError):
            model.get_clone_with_modified_data(volatility=0.02)
        with pytest.raises(ValueError):
            HullWhiteModel.with_constant_coefficients(libor_grid, analytic_model, None, None, 0.1, 0.01)

    def test_model_parameters_support_autograd(self, model, make_simulation, discount_curve):
        model.requires_grad()
        simulation = make_simulation(model, num_paths=2000)
        price = (simulation.get_zero_coupon_bond(2.0, 5.0) / simulation.get_numeraire(2.0)).average()
        volatility, mean_reversion = model.get_model_params()
        gradient = torch.autograd.grad(price, [volatility, mean_reversion], allow_unused=True)
        assert gradient[0] is not None
        assert torch.isfinite(gradient[0]).all()


class TestHullWhitePiecewiseCoefficients:
    """Tests for coefficients that change within and across simulation steps."""

    def test_curve_is_repriced_with_changing_mean_reversion(self, libor_grid, analytic_model, discount_curve,
                                                             make_simulation):
        volatility_model = ShortRateVolatilityModelPiecewiseConstant(TimeGrid([0.0, 1.0]), 0.03, [0.02, 1.5])
        model = HullWhiteModel(libor_grid, analytic_model, ForwardCurveFromDiscountCurve(discount_curve, 0.25),
                               None, volatility_model)
        simulation = make_simulation(model, num_paths=100000, seed=577)

        for time in [1.0, 3.0, 6.0]:
            inverse_numeraire = simulation.get_numeraire(time).invert()
            error = abs(inverse_numeraire.average().item() - discount_curve.get_discount_factor(time))
            assert error < 4.0 * inverse_numeraire.standard_error().item() + 2e-3

    @pytest.fixture
    def off_grid_model(self, libor_grid, analytic_model, discount_curve):
        # Volatility pieces start in the middle of the simulation steps
        volatility_model = ShortRateVolatilityModelPiecewiseConstant(
            TimeGrid([0.0, 0.25, 0.75]), [0.005, 0.03, 0.005], 0.1)
        return HullWhiteModel(libor_grid, analytic_model, None, discount_curve, volatility_model)

    def test_step_coefficients_integrate_across_pieces(self, off_grid_model, make_simulation):
        make_simulation(off_grid_model, num_paths=10, grid=TimeGrid.from_step(0.0, 2.0, 0.5))
        volatility_model = off_grid_model.get_volatility_model()

        for time_index, (t0, t1) in enumerate([(0.0, 0.5), (0.5, 1.0), (1.0, 1.5)]):
            loading = off_grid_model.get_factor_loading(time_index, 0, None)[0]
            assert (loading * loading * (t1 - t0)).values.item() == pytest.approx(
                volatility_model.short_rate_conditional_variance(t0, t1).item(), rel=1e-12)

            drift_at_zero = off_grid_model.get_drift(time_index, [PathwiseValue.constant(0.0)])[0]
            drift_at_one = off_grid_model.get_drift(time_index, [PathwiseValue.constant(1.0)])[0]
            decay = math.exp(-volatility_model.mean_reversion_integral(t0, t1).item())
            assert ((drift_at_one - drift_at_zero) * (t1 - t0)).values.item() == pytest.approx(decay - 1.0, rel=1e-12)

    def test_short_rate_variance_with_off_grid_pieces(self, off_grid_model, make_simulation):
        simulation = make_simulation(off_grid_model, num_paths=100000, seed=99,
                                     grid=TimeGrid.from_step(0.0, 2.0, 0.5))
        volatility_model = off_grid_model.get_volatility_model()

        for time in [1.0, 2.0]:
            short_rate = simulation.get_process_value(simulation.get_time_index(time).index, 0)
            expected = volatility_model.short_rate_conditional_variance(0.0, time).item()
            assert short_rate.variance().item() == pytest.approx(expected, rel=0.02)
