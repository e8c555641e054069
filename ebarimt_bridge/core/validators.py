# -*- coding: utf-8 -*-
# Copyright (c) 2024, Digital Consulting Service LLC (Mongolia)
# License: GNU General Public License v3

"""
Validation Utilities for eBarimt Bridge

Chainable field validator used by the bill parser and processor. Errors are
collected in order; callers that short-circuit take the first one.
"""

from __future__ import annotations

import math
import numbers
import re
from dataclasses import dataclass
from typing import Any, Callable


@dataclass
class ValidationError:
    """Single validation error"""
    field: str
    message: str
    code: str = "invalid"
    value: Any = None


@dataclass
class ValidationResult:
    """Result of validation"""
    is_valid: bool
    errors: list[ValidationError]

    @property
    def first_message(self) -> str | None:
        return self.errors[0].message if self.errors else None

    def messages(self) -> list[str]:
        return [e.message for e in self.errors]


def is_number(value: Any) -> bool:
    """Finite real number; booleans, NaN and infinities are rejected"""
    return isinstance(value, numbers.Real) and not isinstance(value, bool) and math.isfinite(value)


class Validator:
    """Chainable field validator

    Usage:
        result = (Validator()
            .field("orderId", data.get("orderId")).required()
            .field("receipts", data.get("receipts")).is_list().not_empty()
            .validate())
    """

    def __init__(self):
        self._errors: list[ValidationError] = []
        self._current_field: str | None = None
        self._current_value: Any = None
        self._skip_remaining = False

    def field(self, name: str, value: Any) -> "Validator":
        """Start validating a new field"""
        self._current_field = name
        self._current_value = value
        self._skip_remaining = False
        return self

    def _add_error(self, message: str, code: str = "invalid"):
        self._errors.append(ValidationError(
            field=self._current_field or "unknown",
            message=message,
            code=code,
            value=self._current_value
        ))
        # one error per field keeps messages unambiguous
        self._skip_remaining = True

    def required(self, message: str | None = None) -> "Validator":
        if self._skip_remaining:
            return self
        if self._current_value is None or self._current_value == "":
            self._add_error(message or f"{self._current_field} is required", "required")
        return self

    def optional(self) -> "Validator":
        if self._current_value is None or self._current_value == "":
            self._skip_remaining = True
        return self

    def is_string(self, message: str | None = None) -> "Validator":
        if self._skip_remaining:
            return self
        if not isinstance(self._current_value, str):
            self._add_error(message or f"{self._current_field} must be a string", "type")
        return self

    def is_numeric(self, message: str | None = None) -> "Validator":
        if self._skip_remaining:
            return self
        if not is_number(self._current_value):
            self._add_error(message or f"{self._current_field} must be a number", "type")
        return self

    def is_list(self, message: str | None = None) -> "Validator":
        if self._skip_remaining:
            return self
        if not isinstance(self._current_value, list):
            self._add_error(message or f"{self._current_field} must be a list", "type")
        return self

    def is_dict(self, message: str | None = None) -> "Validator":
        if self._skip_remaining:
            return self
        if not isinstance(self._current_value, dict):
            self._add_error(message or f"{self._current_field} must be an object", "type")
        return self

    def not_empty(self, message: str | None = None) -> "Validator":
        if self._skip_remaining:
            return self
        if not self._current_value:
            self._add_error(message or f"{self._current_field} is empty", "empty")
        return self

    def positive(self, message: str | None = None) -> "Validator":
        if self._skip_remaining:
            return self
        if not is_number(self._current_value) or self._current_value <= 0:
            self._add_error(message or f"{self._current_field} must be greater than 0", "positive")
        return self

    def regex(self, pattern: str, message: str | None = None) -> "Validator":
        if self._skip_remaining:
            return self
        if not re.match(pattern, str(self._current_value)):
            self._add_error(message or f"{self._current_field} has an invalid format", "format")
        return self

    def in_list(self, valid_values, message: str | None = None) -> "Validator":
        if self._skip_remaining:
            return self
        if self._current_value not in valid_values:
            self._add_error(
                message or "{0} must be one of: {1}".format(
                    self._current_field, ", ".join(str(v) for v in valid_values)
                ),
                "choices"
            )
        return self

    def custom(self, validator_func: Callable[[Any], bool], message: str) -> "Validator":
        if self._skip_remaining:
            return self
        if not validator_func(self._current_value):
            self._add_error(message, "custom")
        return self

    def validate(self) -> ValidationResult:
        return ValidationResult(
            is_valid=len(self._errors) == 0,
            errors=self._errors.copy()
        )


# Bridge-specific validators

def validate_tin(tin: str) -> ValidationResult:
    """TIN must be 7-14 digits (company, individual or citizen TIN)"""
    return (Validator()
        .field("tin", tin).required().is_string()
        .regex(r"^\d{7,14}$", "TIN must be 7-14 digits")
        .validate())
