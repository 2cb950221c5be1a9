from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class ExerciseSchedule:
    """
    Periods of a swap with an exercise flag per period start.

    Period i fixes at ``fixing_dates[i]``, accrues over ``period_lengths[i]``
    and pays at ``payment_dates[i]``. If ``is_exercise_date[i]`` is set the
    holder may exercise at the start of period i.
    """

    fixing_dates: Tuple[float, ...]
    period_lengths: Tuple[float, ...]
    payment_dates: Tuple[float, ...]
    notionals: Tuple[float, ...]
    swap_rates: Tuple[float, ...]
    is_exercise_date: Tuple[bool, ...]

    def __post_init__(self):
        # Store plain tuples regardless of the sequence types passed in
        for name in ("fixing_dates", "period_lengths", "payment_dates", "notionals", "swap_rates"):
            object.__setattr__(self, name, tuple(float(x) for x in getattr(self, name)))
        object.__setattr__(self, "is_exercise_date", tuple(bool(x) for x in self.is_exercise_date))

        lengths = {len(getattr(self, name)) for name in (
            "fixing_dates", "period_lengths", "payment_dates", "notionals", "swap_rates", "is_exercise_date")}
        if len(lengths) != 1:
            raise ValueError("All schedule sequences must have the same length.")

        for previous, current in zip(self.fixing_dates, self.fixing_dates[1:]):
            if current < previous:
                raise ValueError(f"Fixing dates must be non-decreasing, got {previous} followed by {current}.")

    @classmethod
    def regular(cls, start, num_periods, period_length, swap_rate, notional=1.0, exercise=True):
        """
        Evenly spaced schedule with payment at the end of each period.

        ``exercise`` is either a single flag for all periods or one flag per period.
        """
        fixing_dates = [start + i * period_length for i in range(num_periods)]
        payment_dates = [fixing_date + period_length for fixing_date in fixing_dates]
        if isinstance(exercise, bool):
            exercise = [exercise] * num_periods
        return cls(
            fixing_dates=fixing_dates,
            period_lengths=[period_length] * num_periods,
            payment_dates=payment_dates,
            notionals=[notional] * num_periods,
            swap_rates=[swap_rate] * num_periods,
            is_exercise_date=exercise,
        )

    def __len__(self):
        return len(self.fixing_dates)

    @property
    def exercise_times(self):
        return tuple(t for t, exercisable in zip(self.fixing_dates, self.is_exercise_date) if exercisable)

    @property
    def final_maturity(self):
        return self.payment_dates[-1]

    def fixing_dates_after(self, evaluation_time):
        return tuple(t for t in self.fixing_dates if t >= evaluation_time)

    def with_exercise_dates(self, is_exercise_date):
        return ExerciseSchedule(self.fixing_dates, self.period_lengths, self.payment_dates,
                                self.notionals, self.swap_rates, is_exercise_date)

    def with_swap_rate(self, swap_rate):
        return ExerciseSchedule(self.fixing_dates, self.period_lengths, self.payment_dates,
                                self.notionals, [swap_rate] * len(self), self.is_exercise_date)
