from __future__ import annotations


class DonationAppError(Exception):
    """Base class for domain errors. The message is shown to the caller as-is."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidCredentialsError(DonationAppError):
    def __init__(self, message: str = "Invalid credentials") -> None:
        super().__init__(message)


class DuplicateEmailError(DonationAppError):
    def __init__(self, message: str = "Email already registered") -> None:
        super().__init__(message)


class DonationNotFoundError(DonationAppError):
    def __init__(self, donation_id: str) -> None:
        super().__init__("Donation not found")
        self.donation_id = donation_id


class InvalidTransitionError(DonationAppError):
    """Raised when a requested status change is not an allowed edge."""
