"""
Onboarding Exceptions

Every failure raised by the user services carries an ErrorKind so callers
can tell "retry with different input" from "retry later" from "contact support"
without inspecting message text.
"""
from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    INVALID_INPUT = "invalid_input"
    NOT_FOUND = "not_found"
    UNAUTHORIZED = "unauthorized"
    UPSTREAM_FAILURE = "upstream_failure"
    PERSISTENCE_FAILURE = "persistence_failure"
    INTERNAL = "internal"


class ErrorCode(int, Enum):
    """Stable numeric codes exposed to API clients."""
    INTERNAL = 1
    USER_NOT_FOUND = 2
    PROFILE_NOT_FOUND = 3
    PIN_NOT_FOUND = 4
    PIN_MISMATCH = 5
    PHONE_NUMBER_IN_USE = 6
    INVALID_PHONE_NUMBER = 7
    INVALID_PIN_LENGTH = 8
    INVALID_PIN_DIGITS = 9
    NO_EXISTING_PIN = 10
    OTP_DISPATCH_FAILED = 11
    OTP_VERIFICATION_FAILED = 12
    NOTIFICATION_FAILED = 13
    PERMISSION_DENIED = 14
    PROFILE_CREATION_FAILED = 15
    SAVE_PIN_FAILED = 16
    PERSISTENCE_FAILED = 17
    INVALID_PUSH_TOKEN = 18
    INVALID_REFRESH_TOKEN = 19
    PROFILE_SUSPENDED = 20
    PIN_ALREADY_SET = 21
    INVALID_WELCOME_MESSAGE = 22
    ROLE_NOT_FOUND = 23
    ROLE_NAME_IN_USE = 24
    INVALID_NAV_ACTION = 25


class OnboardingError(Exception):
    """Base exception for onboarding errors"""
    kind: ErrorKind = ErrorKind.INTERNAL
    code: ErrorCode = ErrorCode.INTERNAL
    default_message: str = "an internal error occurred"

    def __init__(self, message: Optional[str] = None, cause: Optional[BaseException] = None):
        self.message = message or self.default_message
        self.cause = cause
        super().__init__(self.message)
        if cause is not None:
            self.__cause__ = cause

    @property
    def retryable(self) -> bool:
        """True when the same request may succeed later without changes."""
        return self.kind in (ErrorKind.UPSTREAM_FAILURE, ErrorKind.PERSISTENCE_FAILURE)

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "code": int(self.code),
            "message": self.message,
            "retryable": self.retryable,
        }


class RecordNotFoundError(Exception):
    """Raised by a repository when a keyed lookup has no row."""
    pass


# Invalid input

class InvalidInputError(OnboardingError):
    kind = ErrorKind.INVALID_INPUT


class InvalidPINFormatError(InvalidInputError):
    """Raised when a PIN violates the length or digits-only policy"""
    code = ErrorCode.INVALID_PIN_DIGITS
    default_message = "pin should be a valid number"

    @classmethod
    def length(cls, min_length: int, max_length: int) -> "InvalidPINFormatError":
        if min_length == max_length:
            message = f"pin should be of {min_length} digits"
        else:
            message = f"pin should be between {min_length} and {max_length} digits"
        err = cls(message)
        err.code = ErrorCode.INVALID_PIN_LENGTH
        return err

    @classmethod
    def digits(cls) -> "InvalidPINFormatError":
        return cls()


class PhoneNormalizationError(InvalidInputError):
    code = ErrorCode.INVALID_PHONE_NUMBER
    default_message = "unable to normalize the msisdn"


class PhoneNumberInUseError(InvalidInputError):
    code = ErrorCode.PHONE_NUMBER_IN_USE
    default_message = "provided phone number is already in use"


class InvalidPushTokenError(InvalidInputError):
    code = ErrorCode.INVALID_PUSH_TOKEN
    default_message = "invalid push token length"


class PINAlreadySetError(InvalidInputError):
    """Raised when a first PIN is set on a profile that already has one"""
    code = ErrorCode.PIN_ALREADY_SET
    default_message = "user already has a PIN. Use the reset or change flow instead"


class InvalidWelcomeMessageError(InvalidInputError):
    code = ErrorCode.INVALID_WELCOME_MESSAGE
    default_message = "welcome message must contain a {pin} field and no fields other than {name} and {pin}"


class RoleNameInUseError(InvalidInputError):
    code = ErrorCode.ROLE_NAME_IN_USE
    default_message = "a role with a similar name exists"


class InvalidNavActionError(InvalidInputError):
    code = ErrorCode.INVALID_NAV_ACTION
    default_message = "unknown navigation action"


# Not found

class NotFoundError(OnboardingError):
    kind = ErrorKind.NOT_FOUND


class UserNotFoundError(NotFoundError):
    code = ErrorCode.USER_NOT_FOUND
    default_message = "failed to get a user"


class ProfileNotFoundError(NotFoundError):
    code = ErrorCode.PROFILE_NOT_FOUND
    default_message = "failed to get a user profile"


class PINNotFoundError(NotFoundError):
    code = ErrorCode.PIN_NOT_FOUND
    default_message = "failed to get a user pin"


class NoExistingCredentialError(NotFoundError):
    """Raised when a reset or change is attempted on a profile without a PIN"""
    code = ErrorCode.NO_EXISTING_PIN
    default_message = "request for a PIN reset failed. User does not have an existing PIN"


class RoleNotFoundError(NotFoundError):
    code = ErrorCode.ROLE_NOT_FOUND
    default_message = "role not found"


# Unauthorized

class UnauthorizedError(OnboardingError):
    kind = ErrorKind.UNAUTHORIZED


class PermissionDeniedError(UnauthorizedError):
    code = ErrorCode.PERMISSION_DENIED
    default_message = "user does not have the required permission"


class PINMismatchError(UnauthorizedError):
    code = ErrorCode.PIN_MISMATCH
    default_message = "wrong PIN credentials supplied"


class InvalidRefreshTokenError(UnauthorizedError):
    code = ErrorCode.INVALID_REFRESH_TOKEN
    default_message = "the refresh token is invalid or has expired"


class ProfileSuspendedError(UnauthorizedError):
    """Raised when a suspended profile logs in or manages its own account"""
    code = ErrorCode.PROFILE_SUSPENDED
    default_message = "user profile is suspended"


# Upstream (OTP / notification adapters)

class UpstreamFailureError(OnboardingError):
    kind = ErrorKind.UPSTREAM_FAILURE


class OTPDispatchFailedError(UpstreamFailureError):
    code = ErrorCode.OTP_DISPATCH_FAILED
    default_message = "failed to generate and send an otp"


class OTPVerificationFailedError(UpstreamFailureError):
    """
    Raised on a rejected code as well as on an adapter error. A rejected code is
    not retryable as-is, so this overrides the upstream default.
    """
    code = ErrorCode.OTP_VERIFICATION_FAILED
    default_message = "failed to verify the otp"

    @property
    def retryable(self) -> bool:
        return self.cause is not None


class NotificationDeliveryFailedError(UpstreamFailureError):
    code = ErrorCode.NOTIFICATION_FAILED
    default_message = "unable to send registration notifications"


# Persistence

class PersistenceError(OnboardingError):
    kind = ErrorKind.PERSISTENCE_FAILURE
    code = ErrorCode.PERSISTENCE_FAILED
    default_message = "failed to read or write the record"


class ProfileCreationFailedError(PersistenceError):
    code = ErrorCode.PROFILE_CREATION_FAILED
    default_message = "failed to create a user profile"


class SavePINError(PersistenceError):
    code = ErrorCode.SAVE_PIN_FAILED
    default_message = "failed to save the user pin"


# Internal

class InternalServerError(OnboardingError):
    kind = ErrorKind.INTERNAL
    code = ErrorCode.INTERNAL
    default_message = "an internal error occurred"


def ensure_onboarding_error(exc: Exception) -> OnboardingError:
    """Returns exc unchanged when already descriptive, else wraps it as internal."""
    if isinstance(exc, OnboardingError):
        return exc
    return InternalServerError(cause=exc)
