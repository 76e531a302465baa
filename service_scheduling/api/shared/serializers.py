"""
Wire Serializers

Converts REST JSON records (camelCase keys, integer enum codes, .NET TimeSpan
ticks) to and from the decoded records used by the scheduling core.
"""

from datetime import time, timedelta
from enum import IntEnum
from typing import Any, Dict, Mapping, Optional, Type, TypeVar

from service_scheduling.service_scheduling.doctype.appointment.appointment import Appointment
from service_scheduling.service_scheduling.doctype.recurrence_rule.recurrence_rule import RecurrenceRule
from service_scheduling.service_scheduling.doctype.scheduling_settings.scheduling_settings import SchedulingSettings
from service_scheduling.service_scheduling.scheduling.constants import (
	AppointmentStatus,
	Frequency,
	RuleStatus,
	ServiceType,
)
from service_scheduling.service_scheduling.scheduling.exceptions import ValidationError
from service_scheduling.service_scheduling.scheduling.overlap import Conflict
from service_scheduling.service_scheduling.scheduling.recurrence import Occurrence
from service_scheduling.service_scheduling.scheduling.timemath import get_time
from .validators import validate_time_string


# 1 tick = 100 ns
TICKS_PER_SECOND = 10_000_000
DEFAULT_RULE_TIME = time(9, 0)

E = TypeVar("E", bound=IntEnum)


def decode_enum(enum_cls: Type[E], value: Any, field_name: str) -> E:
	"""
	Decodifica un enum desde su código entero (o nombre, p.ej. "weekly").

	Raises:
		ValidationError: si el valor no corresponde a ningún miembro
	"""
	if isinstance(value, enum_cls):
		return value

	try:
		if isinstance(value, str) and not value.strip().lstrip("-").isdigit():
			return enum_cls[value.strip().upper().replace(" ", "_")]
		return enum_cls(int(value))
	except (KeyError, TypeError, ValueError):
		raise ValidationError(f"Invalid {field_name}: {value!r}")


def time_from_wire(value: Any) -> time:
	"""
	Hora del día desde el formato del API.

	Acepta "HH:MM[:SS]", un TimeSpan {"ticks": n} o ticks enteros.
	Sin valor -> 09:00:00 (default del frontend).
	"""
	if value is None or value == "":
		return DEFAULT_RULE_TIME

	if isinstance(value, time):
		return value

	if isinstance(value, Mapping):
		value = value.get("ticks")

	if isinstance(value, int) and not isinstance(value, bool):
		try:
			return get_time(timedelta(seconds=value / TICKS_PER_SECOND))
		except ValueError as e:
			raise ValidationError(f"Invalid time ticks {value}: {e}")

	return get_time(validate_time_string(value))


def time_to_ticks(value: time) -> Dict[str, int]:
	"""Hora del día como TimeSpan {"ticks": n}."""
	seconds = value.hour * 3600 + value.minute * 60 + value.second
	return {"ticks": seconds * TICKS_PER_SECOND}


def decode_recurrence_rule(payload: Mapping[str, Any]) -> RecurrenceRule:
	"""
	Recurrence del API -> RecurrenceRule.

	La regla se valida antes de devolverse.

	Raises:
		ValidationError / InvalidRuleError
	"""
	data = {
		"id": payload.get("id"),
		"company_id": payload.get("companyId"),
		"customer_id": payload.get("customerId"),
		"team_id": payload.get("teamId"),
		"title": payload.get("title"),
		"address": payload.get("address"),
		"notes": payload.get("notes"),
		"frequency": decode_enum(Frequency, payload.get("frequency"), "frequency"),
		"day": payload.get("day"),
		"time": time_from_wire(payload.get("time")),
		"duration": payload.get("duration"),
		"start_date": payload.get("startDate"),
		"end_date": payload.get("endDate"),
		"status": decode_enum(RuleStatus, payload.get("status") or RuleStatus.ACTIVE, "status"),
		"service_type": decode_enum(ServiceType, payload.get("type") or ServiceType.REGULAR, "type"),
		"timezone": payload.get("timezone"),
		"last_execution": payload.get("lastExecution"),
		"next_execution": payload.get("nextExecution"),
	}

	rule = RecurrenceRule.from_dict(data)
	rule.validate()
	return rule


def encode_recurrence_rule(rule: RecurrenceRule, ticks: bool = False) -> Dict[str, Any]:
	"""RecurrenceRule -> JSON del API (time como HH:MM:SS o TimeSpan)."""
	return {
		"id": rule.id,
		"companyId": rule.company_id,
		"customerId": rule.customer_id,
		"teamId": rule.team_id,
		"title": rule.title,
		"address": rule.address,
		"notes": rule.notes,
		"frequency": int(rule.frequency),
		"day": rule.day,
		"time": time_to_ticks(rule.time) if ticks else rule.time.strftime("%H:%M:%S"),
		"duration": rule.duration,
		"status": int(rule.status),
		"type": int(rule.service_type),
		"startDate": rule.start_date.isoformat(),
		"endDate": rule.end_date.isoformat() if rule.end_date else None,
		"timezone": rule.timezone,
		"lastExecution": rule.last_execution.isoformat() if rule.last_execution else None,
		"nextExecution": rule.next_execution.isoformat() if rule.next_execution else None,
	}


def decode_appointment(payload: Mapping[str, Any]) -> Appointment:
	"""
	Appointment del API -> Appointment.

	Raises:
		MalformedIntervalError: si start/end no se pueden interpretar
	"""
	return Appointment.from_dict({
		"id": payload.get("id"),
		"start": payload.get("start") or payload.get("startDate"),
		"end": payload.get("end") or payload.get("endDate"),
		"professional_id": payload.get("professionalId"),
		"team_id": payload.get("teamId"),
		"company_id": payload.get("companyId"),
		"status": decode_enum(AppointmentStatus, payload.get("status") or AppointmentStatus.SCHEDULED, "status"),
		"title": payload.get("title"),
		"recurrence_id": payload.get("recurrenceId"),
		"sequence_index": payload.get("sequenceIndex"),
	})


def encode_appointment(appointment: Appointment) -> Dict[str, Any]:
	return {
		"id": appointment.id,
		"start": appointment.start.isoformat(),
		"end": appointment.end.isoformat(),
		"professionalId": appointment.professional_id,
		"teamId": appointment.team_id,
		"companyId": appointment.company_id,
		"status": int(appointment.status),
		"title": appointment.title,
		"recurrenceId": appointment.recurrence_id,
		"sequenceIndex": appointment.sequence_index,
	}


def decode_settings(payload: Optional[Mapping[str, Any]]) -> SchedulingSettings:
	"""
	ScheduleSettings del API -> SchedulingSettings.

	holidays acepta ["2026-12-25", ...] o [{"date": "...", "holidayName": "..."}, ...].
	"""
	payload = payload or {}

	holidays = {}
	for item in payload.get("holidays") or []:
		if isinstance(item, Mapping):
			holidays[item.get("date")] = item.get("holidayName")
		else:
			holidays[item] = None

	buffer_minutes = payload.get("bufferMinutes")
	if buffer_minutes is None:
		buffer_minutes = payload.get("bufferTime")

	return SchedulingSettings.from_dict({
		"working_days": payload.get("workingDays"),
		"default_start_time": payload.get("defaultStartTime"),
		"default_end_time": payload.get("defaultEndTime"),
		"buffer_minutes": buffer_minutes,
		"allow_overlapping": payload.get("allowOverlapping", False),
		"holidays": holidays,
		"slot_duration_minutes": payload.get("slotDuration"),
		"auto_confirm": payload.get("autoConfirm", False),
		"company_id": payload.get("companyId"),
	})


def encode_conflict(conflict: Conflict) -> Dict[str, Any]:
	"""Conflict -> JSON (type como código entero, timeSlot HH:MM-HH:MM)."""
	start, end = conflict.interval
	return {
		"type": int(conflict.type),
		"message": conflict.message,
		"conflictingAppointmentId": conflict.conflicting_appointment_id,
		"date": conflict.date.isoformat(),
		"timeSlot": f"{start.strftime('%H:%M')}-{end.strftime('%H:%M')}",
		"interval": {"start": start.isoformat(), "end": end.isoformat()},
	}


def encode_occurrence(occurrence: Occurrence) -> Dict[str, Any]:
	return {
		"ruleId": occurrence.rule_id,
		"start": occurrence.start.isoformat(),
		"end": occurrence.end.isoformat(),
		"duration": int((occurrence.end - occurrence.start).total_seconds() // 60),
		"sequenceIndex": occurrence.sequence_index,
	}
