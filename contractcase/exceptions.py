"""
contractcase Exceptions

Exception hierarchy for the contract verification harness.
"""


class ContractCaseException(Exception):
    """Base exception for contractcase."""
    pass


class ConfigurationError(ContractCaseException):
    """Configuration error."""
    pass


class DataSourceError(ContractCaseException):
    """Data source file is missing, unreadable or malformed."""
    pass


class MissingParameterError(DataSourceError):
    """A required parameter is absent from the data row."""

    def __init__(self, key: str, row: str = ""):
        self.key = key
        self.row = row
        where = f" in row '{row}'" if row else ""
        super().__init__(f"Missing parameter '{key}'{where}")


class ChainError(ContractCaseException):
    """Blockchain client error."""
    pass


class TransactionError(ChainError):
    """Transaction could not be applied."""
    pass


class InsufficientFundsError(TransactionError):
    """Sender cannot pay for value plus gas."""
    pass


class IntrinsicGasError(TransactionError):
    """Gas limit is below the intrinsic cost of the transaction."""
    pass


class NonceError(TransactionError):
    """Transaction nonce does not match the sender's account nonce."""
    pass


class ReceiptTimeoutError(ChainError):
    """No receipt became available for a transaction hash."""
    pass


class ContractError(ContractCaseException):
    """Contract interaction error."""
    pass


class DeploymentError(ContractError):
    """Contract deployment failed."""
    pass


class ContractCallError(ContractError):
    """Contract call reverted or failed."""

    def __init__(self, message: str, reason: str = "", output: bytes = b""):
        self.reason = reason
        self.output = output
        super().__init__(message)


class DecodingError(ContractError):
    """Return data does not match the function's ABI."""
    pass


class CaseFailedError(ContractCaseException):
    """A case run did not pass."""

    def __init__(self, result):
        self.result = result
        super().__init__(result.describe())
