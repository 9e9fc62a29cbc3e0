# app/core/validation.py
"""
Field rules checked before anything touches the database.

Each ``validate_*`` function returns the message of the first rule the value
breaks, or ``None`` when the value is acceptable. The annotated types at the
bottom plug the same rules into pydantic request models.
"""

import re
from typing import Callable, List, Optional, Tuple

from email_validator import EmailNotValidError
from email_validator import validate_email as _check_email_syntax
from pydantic import AfterValidator
from typing_extensions import Annotated

Rule = Tuple[Callable[[str], bool], str]

PASSWORD_RULES: List[Rule] = [
    (lambda v: len(v) >= 8, "Password must be at least 8 characters"),
    (lambda v: re.search(r"[A-Z]", v) is not None, "Password must contain at least one uppercase letter"),
    (lambda v: re.search(r"[a-z]", v) is not None, "Password must contain at least one lowercase letter"),
    (lambda v: re.search(r"[0-9]", v) is not None, "Password must contain at least one number"),
    (lambda v: re.search(r"[^A-Za-z0-9]", v) is not None, "Password must contain at least one special character"),
]


def _email_syntax_ok(value: str) -> bool:
    try:
        _check_email_syntax(value, check_deliverability=False)
    except EmailNotValidError:
        return False
    return True


EMAIL_RULES: List[Rule] = [
    (_email_syntax_ok, "Please enter a valid email address"),
    (lambda v: len(v) >= 5, "Email must be at least 5 characters"),
    (lambda v: len(v) <= 64, "Email must not exceed 64 characters"),
]

VERIFICATION_CODE_RULES: List[Rule] = [
    (lambda v: len(v) == 6, "Verification code must be 6 digits"),
    (lambda v: re.fullmatch(r"\d+", v) is not None, "Verification code must contain only numbers"),
]

PASSWORDS_DO_NOT_MATCH = "Passwords do not match"


def first_violation(value: str, rules: List[Rule]) -> Optional[str]:
    for check, message in rules:
        if not check(value):
            return message
    return None


def validate_password(value: str) -> Optional[str]:
    return first_violation(value, PASSWORD_RULES)


def validate_email(value: str) -> Optional[str]:
    return first_violation(value, EMAIL_RULES)


def validate_verification_code(value: str) -> Optional[str]:
    return first_violation(value, VERIFICATION_CODE_RULES)


def validate_password_confirmation(password: str, confirm_password: str) -> Optional[str]:
    if password != confirm_password:
        return PASSWORDS_DO_NOT_MATCH
    return None


def _enforce(validator: Callable[[str], Optional[str]]) -> Callable[[str], str]:
    def check(value: str) -> str:
        message = validator(value)
        if message:
            raise ValueError(message)
        return value
    return check


def normalize_email(value: str) -> str:
    return value.strip().lower()


Password = Annotated[str, AfterValidator(_enforce(validate_password))]
EmailAddress = Annotated[str, AfterValidator(normalize_email), AfterValidator(_enforce(validate_email))]
VerificationCode = Annotated[str, AfterValidator(_enforce(validate_verification_code))]
