from bisect import bisect_left
from dataclasses import dataclass
from mcrates.common.packages import *
from mcrates.common.exceptions import CalculationException

# Default rounding of grid times: one hour (in years)
DEFAULT_TICK_SIZE = 1.0 / (365.0 * 24.0)


# Result of a time lookup: either an exact grid point or the insertion point
# of a time lying between (or outside) the grid points.
@dataclass(frozen=True)
class TimeIndex:
    index: int          # exact index, or insertion point if not exact
    is_exact: bool

    @property
    def previous(self):
        # Index of the last grid time <= time, -1 if time is before the grid
        return self.index if self.is_exact else self.index - 1

    @property
    def next(self):
        # Index of the first grid time >= time, len(grid) if time is after the grid
        return self.index


# Immutable, strictly increasing time discretization
class TimeGrid:
    def __init__(self, times, tick_size=DEFAULT_TICK_SIZE):
        if isinstance(times, torch.Tensor):
            times = times.tolist()
        self.tick_size = tick_size
        self._ticks_per_unit = round(1.0 / tick_size, 6) if tick_size else None
        self._times = tuple(self._round(float(t)) for t in times)

        if len(self._times) == 0:
            raise ValueError("A time grid requires at least one time.")
        for t_prev, t_next in zip(self._times, self._times[1:]):
            if not t_next > t_prev:
                raise ValueError(f"Times must be strictly increasing, got {t_prev} followed by {t_next}.")

    @classmethod
    def from_step(cls, start, end, step, tick_size=DEFAULT_TICK_SIZE):
        num_steps = int(round((end - start) / step))
        return cls([start + i * step for i in range(num_steps + 1)], tick_size)

    def _round(self, time):
        if not self._ticks_per_unit:
            return time
        return round(time * self._ticks_per_unit) / self._ticks_per_unit

    @property
    def times(self):
        return self._times

    @property
    def number_of_times(self):
        return len(self._times)

    @property
    def number_of_time_steps(self):
        return len(self._times) - 1

    def get_time(self, index):
        if not 0 <= index < len(self._times):
            raise IndexError(f"Time index {index} out of range [0, {len(self._times)}).")
        return self._times[index]

    def get_time_step(self, index):
        if not 0 <= index < len(self._times) - 1:
            raise IndexError(f"Time step index {index} out of range [0, {len(self._times) - 1}).")
        return self._times[index + 1] - self._times[index]

    def get_time_index(self, time) -> TimeIndex:
        time = self._round(float(time))
        position = bisect_left(self._times, time)
        is_exact = position < len(self._times) and self._times[position] == time
        return TimeIndex(position, is_exact)

    def index_of(self, time) -> int:
        lookup = self.get_time_index(time)
        if not lookup.is_exact:
            raise CalculationException(f"Time {time} is not part of the time discretization.")
        return lookup.index

    def contains(self, time) -> bool:
        return self.get_time_index(time).is_exact

    # Index of the grid interval containing time, clamped to the grid
    def floor_index(self, time) -> int:
        return min(max(self.get_time_index(time).previous, 0), len(self._times) - 1)

    def first(self):
        return self._times[0]

    def last(self):
        return self._times[-1]

    def as_tensor(self):
        return torch.tensor(self._times, dtype=FLOAT, device=device)

    def __len__(self):
        return len(self._times)

    def __iter__(self):
        return iter(self._times)

    def __eq__(self, other):
        return isinstance(other, TimeGrid) and self._times == other._times

    def __hash__(self):
        return hash(self._times)

    def __repr__(self):
        return f"TimeGrid({list(self._times)})"
