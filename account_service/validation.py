"""Input validation for account operations.

Validators never raise on bad input. They return a :class:`ValidationResult`
holding either the cleaned value or every violated constraint, in the order
the checks were made, and the caller decides what to do with it.
"""

from __future__ import annotations

import enum
import string
from dataclasses import dataclass, field
from typing import Generic, List, Optional, TypeVar

from email_validator import EmailNotValidError, validate_email

T = TypeVar("T")

EMAIL_EMPTY_MESSAGE = "Email must not be empty"
EMAIL_INVALID_MESSAGE = "Email is not valid"
PASSWORD_EMPTY_MESSAGE = "Password must not be empty"
PASSWORD_WEAK_MESSAGE = "Password is too weak"

MIN_PASSWORD_LENGTH = 8
MAX_PASSWORD_LENGTH = 72


class PasswordStrength(enum.IntEnum):
    """Strength tiers; the value is the minimum score a password needs."""

    WEAK = 1
    FAIR = 2
    GOOD = 4
    STRONG = 5


@dataclass
class ValidationResult(Generic[T]):
    """Either a value or the ordered list of violations that prevented it."""

    value: Optional[T] = None
    violations: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.violations

    @classmethod
    def success(cls, value: T) -> "ValidationResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, *violations: str) -> "ValidationResult[T]":
        return cls(violations=list(violations))


def password_score(password: str) -> int:
    """Count how many strength criteria ``password`` meets.

    Criteria: minimum length, a lower-case letter, an upper-case letter, a
    digit and a symbol. Short passwords never score above 1.
    """
    score = sum(
        [
            len(password) >= MIN_PASSWORD_LENGTH,
            any(c.islower() for c in password),
            any(c.isupper() for c in password),
            any(c.isdigit() for c in password),
            any(c in string.punctuation for c in password),
        ]
    )
    if len(password) < MIN_PASSWORD_LENGTH:
        return min(score, 1)
    return score


def check_password_strength(password: Optional[str], strength: PasswordStrength) -> bool:
    """Return ``True`` if ``password`` reaches the ``strength`` tier.

    The password is scored in the normalised form that gets hashed.
    """
    if not password:
        return False
    return password_score(normalize_password(password)) >= strength


def normalize_password(password: str) -> str:
    """Strip whitespace and truncate to the hashing library limit."""
    return password.strip()[:MAX_PASSWORD_LENGTH]


def normalize_email(email: str) -> str:
    return email.strip().lower()


def validate_email_address(email: Optional[str]) -> ValidationResult[str]:
    """Check the syntax of ``email`` and return its normalised form."""
    if email is None or not email.strip():
        return ValidationResult.failure(EMAIL_EMPTY_MESSAGE)
    try:
        validate_email(email.strip(), check_deliverability=False)
    except EmailNotValidError:
        return ValidationResult.failure(EMAIL_INVALID_MESSAGE)
    return ValidationResult.success(normalize_email(email))


def validate_password(
    password: Optional[str], strength: PasswordStrength = PasswordStrength.STRONG
) -> ValidationResult[str]:
    if not password:
        return ValidationResult.failure(PASSWORD_EMPTY_MESSAGE)
    if not check_password_strength(password, strength):
        return ValidationResult.failure(PASSWORD_WEAK_MESSAGE)
    return ValidationResult.success(password)


def validate_registration(email: Optional[str], password: Optional[str]) -> ValidationResult[str]:
    """Validate a registration request.

    On success the value is the normalised email. On failure every violation
    is reported, email checks first.
    """
    email_result = validate_email_address(email)
    password_result = validate_password(password)
    violations = email_result.violations + password_result.violations
    if violations:
        return ValidationResult.failure(*violations)
    return ValidationResult.success(email_result.value)
