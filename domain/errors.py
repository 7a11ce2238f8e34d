class DomainError(Exception):
    """Base class for rejected operations. State is never partially applied."""


class InvalidAmountError(DomainError):
    pass


class InsufficientFundsError(DomainError):
    pass


class NoEligibleWalletsError(DomainError):
    pass


class InvalidTransferTargetError(DomainError):
    pass


class WalletNotFoundError(DomainError):
    pass


class WalletLockedError(DomainError):
    pass


class InvalidPercentagesError(DomainError):
    pass


class InvalidPinError(DomainError):
    pass


class DecryptionFailedError(DomainError):
    """Raised for every decryption failure, whatever the cause."""

    def __init__(self) -> None:
        super().__init__("Decryption failed: wrong password or corrupted backup")


class MalformedBackupError(DomainError):
    pass


class OperationInProgressError(DomainError):
    pass


class StaleStateError(DomainError):
    pass
