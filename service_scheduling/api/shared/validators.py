"""
Scheduling Validators

Validation utilities for values coming from the REST layer.
"""

import re
from typing import Any

from service_scheduling.service_scheduling.scheduling.calendar_grid import VIEWS
from service_scheduling.service_scheduling.scheduling.exceptions import ValidationError


def validate_date_string(date_str: str, field_name: str = "date") -> str:
	"""
	Validate date string format (YYYY-MM-DD).

	Args:
		date_str: Date string to validate
		field_name: Name of field for error messages

	Returns:
		str: Validated date string

	Raises:
		ValidationError: If date format is invalid
	"""
	if not date_str:
		raise ValidationError(f"{field_name} is required")

	date_str = str(date_str).strip()

	# Basic format check
	if not re.match(r"^\d{4}-\d{2}-\d{2}$", date_str):
		raise ValidationError(f"Invalid {field_name} format. Use YYYY-MM-DD")

	return date_str


def validate_datetime_string(datetime_str: str, field_name: str = "datetime") -> str:
	"""
	Validate ISO-8601 datetime string (YYYY-MM-DDTHH:MM[:SS[.fff]] with optional Z/offset).

	A space is accepted instead of the "T" separator.

	Raises:
		ValidationError: If datetime format is invalid
	"""
	if not datetime_str:
		raise ValidationError(f"{field_name} is required")

	datetime_str = str(datetime_str).strip()

	if not re.match(
		r"^\d{4}-\d{2}-\d{2}[T ]\d{2}:\d{2}(:\d{2}(\.\d+)?)?(Z|[+-]\d{2}:?\d{2})?$",
		datetime_str
	):
		raise ValidationError(f"Invalid {field_name} format. Use ISO-8601 (YYYY-MM-DDTHH:MM:SS+HH:MM)")

	return datetime_str


def validate_time_string(time_str: str, field_name: str = "time") -> str:
	"""
	Validate time-of-day string (HH:MM or HH:MM:SS, 24-hour).

	Raises:
		ValidationError: If time format is invalid
	"""
	if not time_str:
		raise ValidationError(f"{field_name} is required")

	time_str = str(time_str).strip()

	if not re.match(r"^([01]\d|2[0-3]):[0-5]\d(:[0-5]\d)?$", time_str):
		raise ValidationError(f"Invalid {field_name} format. Use HH:MM:SS")

	return time_str


def validate_view(view: str) -> str:
	"""
	Validate calendar view name ("day", "week", "month").

	Raises:
		ValidationError: If the view is unknown
	"""
	view = str(view or "").strip().lower()
	if view not in VIEWS:
		raise ValidationError(f"Invalid view {view!r}. Use one of: {', '.join(VIEWS)}")
	return view


def validate_record_id(value: Any, field_name: str = "id") -> Any:
	"""
	Validate a record id (positive integer or non-empty string up to 140 chars).

	Returns:
		The id, with strings stripped

	Raises:
		ValidationError: If the id is missing or invalid
	"""
	if value is None or value == "":
		raise ValidationError(f"{field_name} is required")

	if isinstance(value, bool):
		raise ValidationError(f"Invalid {field_name}")

	if isinstance(value, int):
		if value <= 0:
			raise ValidationError(f"Invalid {field_name}")
		return value

	value = str(value).strip()

	# Length check
	if not value or len(value) > 140:
		raise ValidationError(f"Invalid {field_name}")

	return value
