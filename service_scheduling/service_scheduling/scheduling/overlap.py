"""
Conflict Detection Service

Detects scheduling conflicts for a candidate interval on a resource
(professional or team), considering:
- Holidays
- Working days and default working hours
- Overlaps with committed appointments (half-open intervals)
- Buffer time between appointments and the overlap policy
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple

from service_scheduling.service_scheduling.doctype.appointment.appointment import Appointment
from service_scheduling.service_scheduling.doctype.scheduling_settings.scheduling_settings import SchedulingSettings
from .availability import get_holidays_touched, get_working_hours_violations
from .constants import AppointmentStatus, ConflictType
from .exceptions import MalformedIntervalError
from .timemath import gap_minutes, overlaps


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Interval:
	"""Intervalo semiabierto [start, end)."""

	start: datetime
	end: datetime
	id: Optional[Any] = None

	def validate(self) -> None:
		try:
			ordered = self.start < self.end
		except TypeError:
			raise MalformedIntervalError(f"Interval {self.id}: start and end cannot be compared")

		if not ordered:
			raise MalformedIntervalError(
				f"Interval {self.id}: start ({self.start}) must be before end ({self.end})"
			)


@dataclass(frozen=True)
class Conflict:
	"""Conflicto detectado para un intervalo candidato."""

	type: ConflictType
	message: str
	date: date
	interval: Tuple[datetime, datetime]
	conflicting_appointment_id: Optional[Any] = None

	def to_dict(self) -> Dict[str, Any]:
		return {
			"type": self.type.name.lower(),
			"message": self.message,
			"date": self.date.isoformat(),
			"interval": {"start": self.interval[0].isoformat(), "end": self.interval[1].isoformat()},
			"conflicting_appointment_id": self.conflicting_appointment_id,
		}


@dataclass(frozen=True)
class ScheduleValidation:
	"""
	Resultado de validar una creación/reprogramación.

	ok es True si y solo si no hay conflictos.
	"""

	conflicts: List[Conflict] = field(default_factory=list)

	@property
	def ok(self) -> bool:
		return not self.conflicts

	def to_dict(self) -> Dict[str, Any]:
		return {
			"ok": self.ok,
			"conflicts": [conflict.to_dict() for conflict in self.conflicts],
		}


def find_conflicts(
	candidate: Any,
	resource_id: Any,
	existing_appointments: Iterable[Any],
	settings: Optional[SchedulingSettings] = None,
	exclude_appointment_id: Optional[Any] = None
) -> List[Conflict]:
	"""
	Detecta conflictos de un intervalo candidato para un recurso.

	Args:
		candidate: Interval, Appointment u objeto con start/end
		resource_id: profesional o equipo a validar
		existing_appointments: citas comprometidas del recurso
		settings: Scheduling Settings (default: SchedulingSettings())
		exclude_appointment_id: cita a excluir (para reprogramaciones)

	Returns:
		list[Conflict]: todos los conflictos, en orden de precedencia
			Holiday, OutsideWorkingHours, Overlap, BufferViolation

	Raises:
		MalformedIntervalError: si el candidato no tiene start < end

	Algoritmo:
		1. Feriados que toca el candidato
		2. Días no laborales / horario fuera de [default_start_time, default_end_time]
		3. Overlap con cada cita del mismo recurso
		4. Buffer (solo si allow_overlapping es False y no hubo Overlap con esa cita):
		   separación >= 0 y < buffer_minutes
	"""
	settings = settings or SchedulingSettings()
	interval = _as_interval(candidate)
	interval.validate()

	start, end = interval.start, interval.end
	span = (start, end)
	conflicts = []

	# 1. Feriados
	for holiday in get_holidays_touched(start, end, settings):
		name = settings.holiday_name(holiday)
		label = f" ({name})" if name else ""
		conflicts.append(Conflict(
			type=ConflictType.HOLIDAY,
			message=f"{holiday.isoformat()} is a holiday{label}",
			date=holiday,
			interval=span
		))

	# 2. Horario laboral
	for reason in get_working_hours_violations(start, end, settings):
		conflicts.append(Conflict(
			type=ConflictType.OUTSIDE_WORKING_HOURS,
			message=reason,
			date=start.date(),
			interval=span
		))

	# 3 y 4. Citas existentes del recurso
	overlap_conflicts = []
	buffer_conflicts = []

	for appt in _active_appointments(existing_appointments, resource_id, exclude_appointment_id):
		appt_id = getattr(appt, "id", None)
		appt_label = f"{appt.start.strftime('%H:%M')}-{appt.end.strftime('%H:%M')}"

		if settings.allow_overlapping:
			# Solo se bloquea el doble agendamiento exacto
			if appt.start == start and appt.end == end:
				overlap_conflicts.append(Conflict(
					type=ConflictType.OVERLAP,
					message=f"Double booking with appointment {appt_id} ({appt_label})",
					date=start.date(),
					interval=span,
					conflicting_appointment_id=appt_id
				))
			continue

		if overlaps(start, end, appt.start, appt.end):
			overlap_conflicts.append(Conflict(
				type=ConflictType.OVERLAP,
				message=f"Overlaps appointment {appt_id} ({appt_label})",
				date=start.date(),
				interval=span,
				conflicting_appointment_id=appt_id
			))
			continue

		if settings.buffer_minutes > 0:
			gap = gap_minutes(start, end, appt.start, appt.end)
			if 0 <= gap < settings.buffer_minutes:
				buffer_conflicts.append(Conflict(
					type=ConflictType.BUFFER_VIOLATION,
					message=(
						f"Only {int(gap)} min between this interval and appointment {appt_id} "
						f"({appt_label}); {settings.buffer_minutes} min required"
					),
					date=start.date(),
					interval=span,
					conflicting_appointment_id=appt_id
				))

	conflicts.extend(overlap_conflicts)
	conflicts.extend(buffer_conflicts)

	logger.debug(
		"find_conflicts resource=%s %s - %s: %d conflict(s)",
		resource_id, start, end, len(conflicts)
	)

	return conflicts


def validate_schedule(
	candidate: Any,
	resource_id: Any,
	existing_appointments: Iterable[Any],
	settings: Optional[SchedulingSettings] = None,
	exclude_appointment_id: Optional[Any] = None
) -> ScheduleValidation:
	"""Envuelve find_conflicts en un ScheduleValidation."""
	return ScheduleValidation(conflicts=find_conflicts(
		candidate,
		resource_id,
		existing_appointments,
		settings,
		exclude_appointment_id=exclude_appointment_id
	))


def summarize_conflicts(conflicts: Iterable[Conflict]) -> Dict[str, int]:
	"""Cantidad de conflictos por tipo: {"overlap": 1, "holiday": 0, ...}."""
	counts = Counter(conflict.type for conflict in conflicts)
	return {conflict_type.name.lower(): counts.get(conflict_type, 0) for conflict_type in ConflictType}


def _as_interval(value: Any) -> Interval:
	"""Normaliza el candidato a Interval."""
	if isinstance(value, Interval):
		return value

	if isinstance(value, tuple) and len(value) == 2:
		return Interval(start=value[0], end=value[1])

	if hasattr(value, "start") and hasattr(value, "end"):
		return Interval(start=value.start, end=value.end, id=getattr(value, "id", None))

	raise MalformedIntervalError(f"Cannot read start/end from {type(value).__name__}")


def _active_appointments(
	appointments: Iterable[Any],
	resource_id: Any,
	exclude_appointment_id: Optional[Any]
) -> Iterable[Any]:
	"""
	Filtra las citas que participan de la detección.

	Excluye Cancelled, la cita en edición, otros recursos y registros malformados
	(estos se registran como problema de calidad de datos).
	"""
	for appt in appointments:
		if getattr(appt, "status", None) == AppointmentStatus.CANCELLED:
			continue

		appt_id = getattr(appt, "id", None)
		if exclude_appointment_id is not None and appt_id == exclude_appointment_id:
			continue

		if isinstance(appt, Appointment) and not appt.belongs_to(resource_id):
			continue

		try:
			_as_interval(appt).validate()
		except MalformedIntervalError as e:
			logger.warning("Skipping malformed appointment in conflict check: %s", e)
			continue

		yield appt
