from mcrates.common.packages import *
from mcrates.stochastic.pathwise_value import PathwiseValue


class Monomials:
    def __init__(self, degree):
        if degree < 0:
            raise ValueError(f"Degree must be non-negative, got {degree}.")
        self.degree = degree

    def get_degree(self):
        return self.degree + 1


# Powers 0..degree of the simulated short rate at the fixing date
class Polynomials(Monomials):
    def __init__(self, degree):
        super().__init__(degree)

    def get_regression_matrix(self, explanatory_variables):
        return torch.stack([explanatory_variables**k for k in range(self.degree+1)], dim=1)

    def get_basis_functions(self, fixing_date, model):
        time_index = model.get_time_discretization().index_of(fixing_date)
        short_rate = model.get_process_value(time_index, 0)
        matrix = self.get_regression_matrix(short_rate.values)
        return [PathwiseValue(column) for column in matrix.unbind(dim=1)]
