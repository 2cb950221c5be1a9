from mcrates.common.packages import *


# Valuation result of a product: pathwise value, its standard error and,
# for products with early exercise, the pathwise first exercise time
class ValuationResults:
    def __init__(self, value, error, exercise_time=None):
        self.value = value
        self.error = error
        self.exercise_time = exercise_time

    def get_price(self):
        return self.value.average()

    def as_dict(self):
        results = {"value": self.value, "error": self.error}
        if self.exercise_time is not None:
            results["exercise_time"] = self.exercise_time
        return results

    def __getitem__(self, key):
        return self.as_dict()[key]

    def _to_numpy(self, obj):
        if isinstance(obj, torch.Tensor):
            return obj.detach().cpu().numpy()
        elif hasattr(obj, "to_numpy"):
            return obj.to_numpy()
        else:
            return obj

    def to_numpy(self):
        return {key: self._to_numpy(value) for key, value in self.as_dict().items()}


# Abstract (base) class for financial products
class Product:
    def __init__(self, product_id=0):
        self.product_id = product_id

    # Abstract method returning the ValuationResults of the product
    def get_values(self, evaluation_time, model):
        raise NotImplementedError

    def get_value(self, evaluation_time, model):
        return self.get_values(evaluation_time, model).value

    def get_price(self, evaluation_time, model):
        return self.get_value(evaluation_time, model).average()
