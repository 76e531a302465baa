"""
Shared utilities for the Service Scheduling API.

Validators for values coming from the REST layer and the wire codec that
maps API records (camelCase, integer codes, TimeSpan ticks) to core records.
"""

from .serializers import (
    decode_appointment,
    decode_enum,
    decode_recurrence_rule,
    decode_settings,
    encode_appointment,
    encode_conflict,
    encode_occurrence,
    encode_recurrence_rule,
    time_from_wire,
    time_to_ticks,
)
from .validators import (
    validate_date_string,
    validate_datetime_string,
    validate_record_id,
    validate_time_string,
    validate_view,
)

__all__ = [
    # Serializers
    "decode_appointment",
    "decode_enum",
    "decode_recurrence_rule",
    "decode_settings",
    "encode_appointment",
    "encode_conflict",
    "encode_occurrence",
    "encode_recurrence_rule",
    "time_from_wire",
    "time_to_ticks",
    # Validators
    "validate_date_string",
    "validate_datetime_string",
    "validate_record_id",
    "validate_time_string",
    "validate_view",
]
