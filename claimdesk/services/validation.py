"""
Form Validation Rules
Field-level rules shared by every create and update path for customers,
policies and claims.

Each ``clean_*`` function checks the supplied values, collects *every*
failing field into a :class:`FieldErrors` mapping and returns the normalized
values ready for storage. Nothing is raised until all fields have been
checked, so callers always receive the complete list of problems.
"""
import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Callable, Dict, Mapping, Optional

from claimdesk.core.exceptions import IntegrityError, ValidationError
from claimdesk.db.models import PolicyType

# Error codes
REQUIRED = "required"
INVALID_VALUE = "invalid_value"
INVALID_EMAIL = "invalid_email"
INVALID_DATE = "invalid_date"
INVALID_CHOICE = "invalid_choice"
MUST_BE_POSITIVE = "must_be_positive"
MUST_BE_NON_NEGATIVE = "must_be_non_negative"
OUT_OF_RANGE = "out_of_range"
NOT_FOUND = "not_found"
DUPLICATE = "duplicate"
ONLY_WHEN_SETTLED = "only_when_settled"

# local@domain.tld
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s.]+$")

# Numeric(12, 2)
MAX_AMOUNT = Decimal("9999999999.99")

CUSTOMER_TEXT_FIELDS = ("first_name", "last_name", "address", "phone")

# Callable answering "does a record with this id exist?"
Exists = Callable[[int], bool]


class FieldErrors(dict):
    """Field name -> error code, keeping the first error seen per field."""

    def add(self, field: str, code: str) -> None:
        self.setdefault(field, code)

    def raise_if_any(self) -> None:
        """
        Raise the collected errors.

        When every failure is an unresolved reference the write is an
        integrity violation; otherwise it is a plain validation failure.
        """
        if not self:
            return
        if all(code == NOT_FOUND for code in self.values()):
            raise IntegrityError(self)
        raise ValidationError(self)


def is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def round_currency(amount: Decimal) -> Decimal:
    """Round to 2 decimal places for currency."""
    return amount.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def to_decimal(value: Any) -> Optional[Decimal]:
    """Unrounded Decimal for a numeric input, or None if it is not a finite number."""
    if isinstance(value, bool):
        return None
    try:
        amount = Decimal(str(value)) if not isinstance(value, Decimal) else value
    except (InvalidOperation, ValueError):
        return None
    if not amount.is_finite():
        return None
    return amount


def parse_date(value: Any) -> Optional[date]:
    """Calendar date from a ``date`` or an ISO ``YYYY-MM-DD`` string."""
    if isinstance(value, datetime):
        return None
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            return None
    return None


def _wanted(values: Mapping[str, Any], field: str, partial: bool) -> bool:
    return not partial or field in values


def _text(values, field, errors: FieldErrors, cleaned: Dict[str, Any]) -> None:
    value = values.get(field)
    if is_blank(value):
        errors.add(field, REQUIRED)
    elif not isinstance(value, str):
        errors.add(field, INVALID_VALUE)
    else:
        cleaned[field] = value


def _amount(values, field, errors: FieldErrors, cleaned: Dict[str, Any], positive: bool) -> None:
    value = values.get(field)
    if value is None or (isinstance(value, str) and not value.strip()):
        errors.add(field, REQUIRED)
        return
    # Sign and range are checked on the unrounded value
    amount = to_decimal(value)
    if amount is None:
        errors.add(field, INVALID_VALUE)
    elif positive and amount <= 0:
        errors.add(field, MUST_BE_POSITIVE)
    elif amount < 0:
        errors.add(field, MUST_BE_NON_NEGATIVE)
    elif amount > MAX_AMOUNT:
        errors.add(field, OUT_OF_RANGE)
    elif positive and round_currency(amount) <= 0:
        errors.add(field, MUST_BE_POSITIVE)
    else:
        cleaned[field] = round_currency(amount)


def _reference(values, field, errors: FieldErrors, cleaned: Dict[str, Any], exists: Optional[Exists]) -> None:
    value = values.get(field)
    if value is None:
        errors.add(field, REQUIRED)
    elif isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        errors.add(field, INVALID_VALUE)
    elif exists is not None and not exists(value):
        errors.add(field, NOT_FOUND)
    else:
        cleaned[field] = value


def clean_customer(values: Mapping[str, Any], partial: bool = False) -> tuple[Dict[str, Any], FieldErrors]:
    """firstName, lastName, address, phone non-blank; email shaped local@domain.tld."""
    errors = FieldErrors()
    cleaned: Dict[str, Any] = {}

    for field in CUSTOMER_TEXT_FIELDS:
        if _wanted(values, field, partial):
            _text(values, field, errors, cleaned)

    if _wanted(values, "email", partial):
        email = values.get("email")
        if is_blank(email):
            errors.add("email", REQUIRED)
        elif not isinstance(email, str) or not EMAIL_PATTERN.match(email.strip()):
            errors.add("email", INVALID_EMAIL)
        else:
            cleaned["email"] = email.strip()

    return cleaned, errors


def clean_policy(
    values: Mapping[str, Any],
    partial: bool = False,
    customer_exists: Optional[Exists] = None,
) -> tuple[Dict[str, Any], FieldErrors]:
    errors = FieldErrors()
    cleaned: Dict[str, Any] = {}

    if _wanted(values, "type", partial):
        value = values.get("type")
        if is_blank(value):
            errors.add("type", REQUIRED)
        else:
            try:
                cleaned["type"] = PolicyType(value.lower() if isinstance(value, str) else value)
            except ValueError:
                errors.add("type", INVALID_CHOICE)

    if _wanted(values, "coverage_amount", partial):
        _amount(values, "coverage_amount", errors, cleaned, positive=False)

    if _wanted(values, "customer_id", partial):
        _reference(values, "customer_id", errors, cleaned, customer_exists)

    return cleaned, errors


def clean_claim(
    values: Mapping[str, Any],
    partial: bool = False,
    policy_exists: Optional[Exists] = None,
) -> tuple[Dict[str, Any], FieldErrors]:
    """
    Incident date, description, claimed amount and policy reference.

    Status and settlement are not form fields here; the lifecycle engine owns
    them.
    """
    errors = FieldErrors()
    cleaned: Dict[str, Any] = {}

    if _wanted(values, "date", partial):
        value = values.get("date")
        if is_blank(value):
            errors.add("date", REQUIRED)
        else:
            parsed = parse_date(value)
            if parsed is None:
                errors.add("date", INVALID_DATE)
            else:
                cleaned["date"] = parsed

    if _wanted(values, "description", partial):
        _text(values, "description", errors, cleaned)

    if _wanted(values, "claimed_amount", partial):
        _amount(values, "claimed_amount", errors, cleaned, positive=True)

    if _wanted(values, "policy_id", partial):
        _reference(values, "policy_id", errors, cleaned, policy_exists)

    return cleaned, errors


def clean_settled_amount(value: Any, errors: FieldErrors) -> Optional[Decimal]:
    """Settlement payout: required, finite and >= 0."""
    cleaned: Dict[str, Any] = {}
    _amount({"settled_amount": value}, "settled_amount", errors, cleaned, positive=False)
    return cleaned.get("settled_amount")
