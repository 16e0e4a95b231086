"""Exceptions raised by the service layer and mapped to HTTP status codes in the router."""


class InputError(ValueError):
    """Engine input rejected at the boundary (array lengths, NaN, classification)."""


class MissingFinancialInputsError(ValueError):
    code = "MISSING_FINANCIAL_INPUTS"


class BrandNotConfiguredError(ValueError):
    pass


class NotFoundError(LookupError):
    pass
