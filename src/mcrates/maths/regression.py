from mcrates.common.packages import *
from mcrates.stochastic.pathwise_value import PathwiseValue


# Conditional expectation E[Y | basis] estimated by least squares regression
# of Y on the basis functions across all paths
class MonteCarloConditionalExpectationRegression:
    def __init__(self, basis_functions):
        if len(basis_functions) == 0:
            raise ValueError("At least one basis function is required.")
        self.basis_functions = [PathwiseValue(basis) for basis in basis_functions]
        self._regression_matrix = None

    def get_number_of_paths(self):
        return max(basis.size() for basis in self.basis_functions)

    def get_regression_matrix(self):
        if self._regression_matrix is None:
            num_paths = self.get_number_of_paths()
            self._regression_matrix = torch.stack(
                [basis.expand(num_paths).detach() for basis in self.basis_functions], dim=1)
        return self._regression_matrix

    def get_regression_coefficients(self, value):
        value = PathwiseValue(value)
        X = self.get_regression_matrix()
        Y = value.expand(X.shape[0]).detach().unsqueeze(1)

        with torch.no_grad():
            if X.device.type == "cpu":
                # gelsd handles rank deficient bases
                coefficients = torch.linalg.lstsq(X, Y, driver="gelsd").solution
            else:
                coefficients = torch.linalg.pinv(X) @ Y

        return coefficients.squeeze(1)

    def get_value_for_coefficients(self, coefficients):
        with torch.no_grad():
            return PathwiseValue(self.get_regression_matrix() @ coefficients)

    def get_conditional_expectation(self, value):
        coefficients = self.get_regression_coefficients(value)
        return self.get_value_for_coefficients(coefficients)
