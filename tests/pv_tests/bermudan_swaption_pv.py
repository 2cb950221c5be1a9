import numpy as np
import matplotlib.pyplot as plt
from mcrates import (
    AnalyticModel,
    BermudanSwaption,
    DiscountCurveInterpolation,
    ExerciseSchedule,
    HullWhiteModel,
    SimulationConfig,
    SimulationController,
    TimeGrid,
    configure_logging,
)
from mcrates.common.packages import device


if __name__ == "__main__":
    config = SimulationConfig(num_paths=20000, num_paths_presim=20000, log_level="INFO")
    logger = configure_logging(config.log_level)
    logger.info("Using device: %s", device)

    # Market data and model
    discount_curve = DiscountCurveInterpolation.from_zero_rates(
        "eur", [0.5, 1.0, 2.0, 5.0, 10.0, 20.0], [0.021, 0.023, 0.026, 0.03, 0.032, 0.033])
    analytic_model = AnalyticModel([discount_curve])
    libor_grid = TimeGrid.from_step(0.0, 20.0, 0.5)
    model = HullWhiteModel.with_constant_coefficients(
        libor_grid, analytic_model, None, discount_curve, mean_reversion=0.05, volatility=0.008)

    # 2y into 8y semi-annual payer Bermudan, callable on every fixing date
    time_grid = TimeGrid.from_step(0.0, 10.0, 0.25)
    strikes = np.linspace(0.01, 0.06, 11)

    prices = []
    errors = []
    for strike in strikes:
        schedule = ExerciseSchedule.regular(start=2.0, num_periods=16, period_length=0.5, swap_rate=strike)
        bermudan = BermudanSwaption(schedule)
        results = SimulationController([bermudan], model, time_grid, config).run_simulation()
        prices.append(results.get_price(0))
        errors.append(results.get_error(0))
        logger.info("Strike %.4f: value %.6f (%.6f)", strike, prices[-1], errors[-1])

    exercise_times = results.get_results(0)["exercise_time"]

    fig, (ax_value, ax_exercise) = plt.subplots(1, 2, figsize=(14, 6))

    ax_value.errorbar(strikes, prices, yerr=2.0 * np.array(errors), color='red', marker='o', capsize=3)
    ax_value.set_xlabel('Strike')
    ax_value.set_ylabel('Value')
    ax_value.set_title('Bermudan payer swaption value vs. strike')
    ax_value.grid(True, linestyle='--', alpha=0.7)

    exercised = exercise_times[np.isfinite(exercise_times)]
    ax_exercise.hist(exercised, bins=np.arange(1.75, 10.25, 0.5), color='blue', alpha=0.7)
    ax_exercise.set_xlabel('Exercise time')
    ax_exercise.set_ylabel('Number of paths')
    ax_exercise.set_title(f'Exercise times at strike {strikes[-1]:.4f} '
                          f'({100.0 * len(exercised) / len(exercise_times):.1f}% exercised)')
    ax_exercise.grid(True, linestyle='--', alpha=0.7)

    plt.tight_layout()
    plt.show()
