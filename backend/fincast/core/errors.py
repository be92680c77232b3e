class ForecastEngineError(Exception):
    """Base class for errors raised by the forecasting and scoring engine."""


class InsufficientHistoryError(ForecastEngineError):
    """Fewer historical points than a forecaster requires."""

    def __init__(self, required: int, actual: int) -> None:
        self.required = required
        self.actual = actual
        super().__init__(f"At least {required} historical points are required, got {actual}.")


class InvalidSimulationParamsError(ForecastEngineError):
    """Trial count too low or a malformed date range."""


class SimulationCancelledError(ForecastEngineError):
    """The Monte Carlo trial loop observed a cancellation request."""


class DataFetchError(ForecastEngineError):
    """The data store collaborator failed. Never retried by the engine."""


class TextGenerationTimeoutError(ForecastEngineError):
    """The text-generation collaborator did not answer in time.

    Absorbed inside the risk scorer; callers of the engine never see it.
    """


class CustomerNotFoundError(ForecastEngineError):
    """No customer with the requested id exists for the tenant."""
