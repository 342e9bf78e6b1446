"""
Scalar validation functions.

Each validator returns the normalized value or raises ``ValidationError``
naming the offending field, so configuration loading and CLI parsing report
problems the same way.
"""

from typing import Any, List, Optional, Sequence

from .exceptions import ValidationError


def validate_positive_integer(
    value: Any,
    min_value: int = 1,
    max_value: Optional[int] = None,
    field_name: str = "value"
) -> int:
    """
    Validate that a value is an integer within bounds.

    Args:
        value: Value to validate
        min_value: Minimum allowed value (inclusive)
        max_value: Maximum allowed value (inclusive), None for no limit
        field_name: Name of the field being validated

    Returns:
        Validated integer value

    Raises:
        ValidationError: If validation fails
    """
    if isinstance(value, bool):
        raise ValidationError(
            f"{field_name} must be a valid integer, got {value}",
            field_name=field_name,
            value=value
        )
    try:
        int_value = int(value)
    except (ValueError, TypeError):
        raise ValidationError(
            f"{field_name} must be a valid integer, got {value}",
            field_name=field_name,
            value=value
        )
    if int_value < min_value:
        raise ValidationError(
            f"{field_name} must be >= {min_value}, got {int_value}",
            field_name=field_name,
            value=value
        )
    if max_value is not None and int_value > max_value:
        raise ValidationError(
            f"{field_name} must be <= {max_value}, got {int_value}",
            field_name=field_name,
            value=value
        )
    return int_value


def validate_positive_float(
    value: Any,
    min_value: float = 0.0,
    max_value: Optional[float] = None,
    field_name: str = "value"
) -> float:
    """
    Validate that a value is a number within bounds.

    Args:
        value: Value to validate
        min_value: Minimum allowed value (inclusive)
        max_value: Maximum allowed value (inclusive), None for no limit
        field_name: Name of the field being validated

    Returns:
        Validated float value

    Raises:
        ValidationError: If validation fails
    """
    if isinstance(value, bool):
        raise ValidationError(
            f"{field_name} must be a valid number, got {value}",
            field_name=field_name,
            value=value
        )
    try:
        float_value = float(value)
    except (ValueError, TypeError):
        raise ValidationError(
            f"{field_name} must be a valid number, got {value}",
            field_name=field_name,
            value=value
        )
    if float_value < min_value:
        raise ValidationError(
            f"{field_name} must be >= {min_value}, got {float_value}",
            field_name=field_name,
            value=value
        )
    if max_value is not None and float_value > max_value:
        raise ValidationError(
            f"{field_name} must be <= {max_value}, got {float_value}",
            field_name=field_name,
            value=value
        )
    return float_value


def validate_fraction(value: Any, field_name: str = "fraction") -> float:
    """
    Validate a fraction in the half-open interval (0, 1].

    Raises:
        ValidationError: If the value is not a number in (0, 1]
    """
    fraction = validate_positive_float(value, min_value=0.0, max_value=1.0,
                                       field_name=field_name)
    if fraction <= 0.0:
        raise ValidationError(
            f"{field_name} must be > 0, got {fraction}",
            field_name=field_name,
            value=value
        )
    return fraction


def validate_enum_choice(
    value: Any,
    valid_choices: Sequence[str],
    field_name: str = "value",
    case_sensitive: bool = True
) -> str:
    """
    Validate that a value is one of the allowed choices.

    Args:
        value: Value to validate
        valid_choices: Allowed choices
        field_name: Name of the field being validated
        case_sensitive: Whether the comparison should be case-sensitive

    Returns:
        The matching choice, in the spelling used by ``valid_choices``

    Raises:
        ValidationError: If value is not in choices
    """
    choice_list = list(valid_choices)
    str_value = str(value)

    if case_sensitive:
        if str_value not in choice_list:
            raise ValidationError(
                f"{field_name} must be one of {choice_list}, got {value}",
                field_name=field_name,
                value=value
            )
        return str_value

    lower_choices = [choice.lower() for choice in choice_list]
    lower_value = str_value.lower()
    if lower_value not in lower_choices:
        raise ValidationError(
            f"{field_name} must be one of {choice_list}, got {value}",
            field_name=field_name,
            value=value
        )
    return choice_list[lower_choices.index(lower_value)]


def validate_category_list(
    value: Any,
    valid_choices: Sequence[str],
    field_name: str = "categories"
) -> List[str]:
    """
    Validate a list of metric categories.

    Accepts either a list or a comma-separated string (as typed on the command
    line). Duplicates are dropped while keeping the first occurrence order.

    Raises:
        ValidationError: If the list is empty or contains unknown categories
    """
    if isinstance(value, str):
        value = [part.strip() for part in value.split(",") if part.strip()]

    if not isinstance(value, (list, tuple)) or not value:
        raise ValidationError(
            f"{field_name} must be a non-empty list of categories",
            field_name=field_name,
            value=value
        )

    validated: List[str] = []
    for i, item in enumerate(value):
        choice = validate_enum_choice(
            item,
            valid_choices=valid_choices,
            field_name=f"{field_name}[{i}]",
            case_sensitive=False,
        )
        if choice not in validated:
            validated.append(choice)
    return validated
