from mcrates.common.packages import *


def _values_of(other):
    if isinstance(other, PathwiseValue):
        return other.values
    return other


# A quantity realized on every Monte Carlo path at a fixed time.
# Deterministic quantities are stored as 0-d tensors and broadcast on use.
# Instances are immutable: every operation returns a new PathwiseValue.
class PathwiseValue:
    __slots__ = ("_values",)

    def __init__(self, values):
        if isinstance(values, PathwiseValue):
            values = values.values
        if not isinstance(values, torch.Tensor):
            values = torch.tensor(values, dtype=FLOAT, device=device)
        if values.dim() > 1:
            raise ValueError(f"PathwiseValue requires a scalar or a 1-d tensor, got shape {tuple(values.shape)}.")
        self._values = values

    @classmethod
    def constant(cls, value):
        return cls(torch.tensor(float(value), dtype=FLOAT, device=device))

    @property
    def values(self):
        return self._values

    def is_deterministic(self):
        return self._values.dim() == 0

    def size(self):
        return 1 if self.is_deterministic() else self._values.shape[0]

    def get(self, path):
        if self.is_deterministic():
            return self._values.item()
        return self._values[path].item()

    def expand(self, num_paths):
        return torch.broadcast_to(self._values, (num_paths,))

    # Arithmetic
    def __add__(self, other):
        return PathwiseValue(self._values + _values_of(other))

    __radd__ = __add__

    def __sub__(self, other):
        return PathwiseValue(self._values - _values_of(other))

    def __rsub__(self, other):
        return PathwiseValue(_values_of(other) - self._values)

    def __mul__(self, other):
        return PathwiseValue(self._values * _values_of(other))

    __rmul__ = __mul__

    def __truediv__(self, other):
        return PathwiseValue(self._values / _values_of(other))

    def __rtruediv__(self, other):
        return PathwiseValue(_values_of(other) / self._values)

    def __pow__(self, exponent):
        return PathwiseValue(self._values ** _values_of(exponent))

    def __neg__(self):
        return PathwiseValue(-self._values)

    def add_product(self, factor1, factor2):
        return PathwiseValue(self._values + _values_of(factor1) * _values_of(factor2))

    def exp(self):
        return PathwiseValue(torch.exp(self._values))

    def log(self):
        return PathwiseValue(torch.log(self._values))

    def sqrt(self):
        return PathwiseValue(torch.sqrt(self._values))

    def abs(self):
        return PathwiseValue(torch.abs(self._values))

    def invert(self):
        return PathwiseValue(1.0 / self._values)

    def pow(self, exponent):
        return self ** exponent

    # Pathwise selection: value_if_non_negative where self >= 0, else value_if_negative
    def choose(self, value_if_non_negative, value_if_negative):
        a = _values_of(value_if_non_negative)
        b = _values_of(value_if_negative)
        if not isinstance(a, torch.Tensor):
            a = torch.tensor(float(a), dtype=FLOAT, device=device)
        if not isinstance(b, torch.Tensor):
            b = torch.tensor(float(b), dtype=FLOAT, device=device)
        return PathwiseValue(torch.where(self._values >= 0.0, a, b))

    def get_conditional_expectation(self, estimator):
        return estimator.get_conditional_expectation(self)

    # Reductions (return 0-d tensors so that autograd can flow through them)
    def average(self):
        return self._values.mean()

    def variance(self):
        if self.is_deterministic():
            return torch.zeros((), dtype=self._values.dtype, device=self._values.device)
        return self._values.var(unbiased=False)

    def standard_deviation(self):
        return torch.sqrt(self.variance())

    def standard_error(self):
        return torch.sqrt(self.variance() / self.size())

    def min(self):
        return self._values.min()

    def max(self):
        return self._values.max()

    def to_numpy(self):
        return self._values.detach().cpu().numpy()

    def __len__(self):
        return self.size()

    def __repr__(self):
        if self.is_deterministic():
            return f"PathwiseValue({self._values.item()})"
        return f"PathwiseValue(paths={self.size()}, average={self.average().item():.6g})"
