from mcrates.common.packages import *
from mcrates.common.exceptions import ProcessNotAssignedError, UnsupportedOperationError


# Base model class
class Model:
    def __init__(self):
        self.model_params = []
        self._process = None

    def get_model_params(self):
        return self.model_params

    # If differentiation is enabled, put all model parameters on tape
    # and accumulate adjoints during simulation via AAD
    def requires_grad(self):
        for param in self.model_params:
            param.requires_grad_(True)

    def set_process(self, process):
        self._process = process

    def get_process(self):
        if self._process is None:
            raise ProcessNotAssignedError(f"{type(self).__name__} has no simulation process assigned.")
        return self._process

    def has_process(self):
        return self._process is not None

    def get_number_of_components(self):
        return 1

    def get_number_of_factors(self):
        return 1

    def get_initial_state(self):
        raise NotImplementedError("Method not implemented")

    def get_drift(self, time_index, state, predictor=None):
        raise NotImplementedError("Method not implemented")

    def get_factor_loading(self, time_index, component, state):
        raise NotImplementedError("Method not implemented")

    def get_numeraire(self, time):
        raise NotImplementedError("Method not implemented")

    def get_clone_with_modified_data(self, **data):
        raise UnsupportedOperationError(f"{type(self).__name__} does not support cloning with modified data.")
