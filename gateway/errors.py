"""Gateway exception taxonomy."""


class GatewayError(Exception):
    """Base class for everything the gateway raises on purpose."""


class ConfigurationError(GatewayError):
    pass


class InvalidRequestError(GatewayError):
    """Caller input rejected before any network access."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__(f"Validation failed: {'; '.join(errors)}")


class BrokerError(GatewayError):
    """The broker answered, but not with usable data.

    ``operation`` is the human name of the failing call ("Trade",
    "Account Info", ...) and prefixes the message.
    """

    def __init__(self, operation: str, detail: str):
        self.operation = operation
        self.detail = detail
        super().__init__(f"MT5 {operation} Error: {detail}")


class BrokerUnavailableError(BrokerError):
    """The broker could not be reached or returned a non-2xx status."""


class PositionNotFoundError(GatewayError):
    def __init__(self, position_id: int):
        self.position_id = position_id
        super().__init__(f"Position {position_id} not found")


class TradeRejectedError(GatewayError):
    """The broker processed the request but returned a non-success retcode."""

    def __init__(self, operation: str, retcode: int, reason: str):
        self.operation = operation
        self.retcode = retcode
        self.reason = reason
        super().__init__(f"{operation} failed with code {retcode}: {reason}")
