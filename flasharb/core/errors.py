# /flasharb/core/errors.py
# Every failure inside an execution unit derives from ExecutionError. None of
# them are caught inside the unit: Chain.atomic rolls back and re-raises.


class ExecutionError(Exception):
    """Base class for failures that abort an atomic execution unit."""


class AuthorizationError(ExecutionError):
    """Caller is not the owner, or a callback did not come from the lending facility."""


class ConfigurationError(ExecutionError):
    """Invalid input: zero loan amount, unapproved venue, unknown contract."""


class ProfitShortfallError(ExecutionError):
    """A swap output or the realized profit fell below its required floor."""

    def __init__(self, message: str, required: int = 0, actual: int = 0):
        super().__init__(message)
        self.required = required
        self.actual = actual


class DecodingError(ExecutionError):
    """Strategy payload is malformed or carries an unknown tag."""


class ReentrancyError(ExecutionError):
    pass


class SystemPausedError(ExecutionError):
    pass


class InsufficientBalanceError(ExecutionError):
    """Token transfer exceeds the sender's balance or allowance."""


class InsufficientLiquidityError(ExecutionError):
    pass


class RepaymentShortfallError(ExecutionError):
    """The lending facility did not get principal plus fee back."""


class DeadlineExpiredError(ExecutionError):
    pass
