class AutosizerError(Exception):
    """Base class for every failure raised while applying recommendations."""


class InvalidPayload(AutosizerError):
    """The trigger message could not be decoded, parsed or validated."""


class MissingField(InvalidPayload):
    def __init__(self, field: str) -> None:
        super().__init__(f"Attribute '{field}' missing from payload")
        self.field = field


class ListInstancesError(AutosizerError):
    pass


class ListRecommendationsError(AutosizerError):
    pass


class StopError(AutosizerError):
    pass


class ResizeError(AutosizerError):
    pass


class StartError(AutosizerError):
    pass


class OperationTimeoutError(AutosizerError, TimeoutError):
    def __init__(self, operation: str, attempts: int) -> None:
        super().__init__(
            f"Operation {operation} did not reach DONE after {attempts} poll(s)"
        )
        self.operation = operation
        self.attempts = attempts


class RecommendationParseError(AutosizerError):
    """Machine types could not be extracted from a recommendation."""


class ClaimRecommendationError(AutosizerError):
    pass


class ConfigurationError(AutosizerError):
    pass
