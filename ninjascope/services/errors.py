"""Typed failures raised by the market intelligence services."""


class ErrorCode:
    """Machine-readable error codes."""

    MARKETS_ERROR = "MARKETS_ERROR"
    ORDERBOOK_ERROR = "ORDERBOOK_ERROR"
    TRADES_ERROR = "TRADES_ERROR"
    ORACLE_ERROR = "ORACLE_ERROR"
    PORTFOLIO_ERROR = "PORTFOLIO_ERROR"
    POSITIONS_ERROR = "POSITIONS_ERROR"


class UpstreamError(Exception):
    """A core fetch from the data provider failed."""

    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code
        self.message = message

    def to_dict(self) -> dict[str, str]:
        return {"code": self.code, "message": self.message}
