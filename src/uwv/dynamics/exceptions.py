class DynamicModelError(ValueError):
    """ General hydrodynamic model error """


class InvalidConfiguration(DynamicModelError):
    """ Raised when vehicle parameters violate the model's invariants """


class InvalidInput(DynamicModelError):
    """ Raised when a state or command vector passed for evaluation is unset or malformed """
