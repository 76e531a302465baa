# Copyright (c) 2026, Sebastian Ortiz Valencia and contributors
# For license information, please see license.txt

"""
Appointment DocType

Cita comprometida (persistida por la API externa) de un profesional o equipo.
"""

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from service_scheduling.service_scheduling.scheduling.constants import AppointmentStatus
from service_scheduling.service_scheduling.scheduling.exceptions import MalformedIntervalError
from service_scheduling.service_scheduling.scheduling.timemath import get_datetime


@dataclass(frozen=True)
class Appointment:
	"""
	Appointment with validation.

	Flujo:
	1. La API externa entrega citas Scheduled/InProgress/Completed/Cancelled
	2. Las Cancelled no participan de conflictos ni de la grilla
	3. Las citas materializadas desde una regla llevan recurrence_id y sequence_index
	"""

	id: Any
	start: datetime
	end: datetime
	professional_id: Optional[Any] = None
	team_id: Optional[Any] = None
	company_id: Optional[Any] = None
	status: AppointmentStatus = AppointmentStatus.SCHEDULED
	title: Optional[str] = None
	recurrence_id: Optional[Any] = None
	sequence_index: Optional[int] = None

	def validate(self) -> None:
		"""
		Valida que start < end.

		Raises:
			MalformedIntervalError: si start/end no se pueden ordenar
		"""
		if not isinstance(self.start, datetime) or not isinstance(self.end, datetime):
			raise MalformedIntervalError(f"Appointment {self.id}: start and end must be datetimes")

		try:
			ordered = self.start < self.end
		except TypeError:
			# naive vs aware
			raise MalformedIntervalError(f"Appointment {self.id}: start and end mix naive and aware datetimes")

		if not ordered:
			raise MalformedIntervalError(
				f"Appointment {self.id}: start ({self.start.isoformat()}) must be before end ({self.end.isoformat()})"
			)

	@property
	def is_cancelled(self) -> bool:
		return self.status == AppointmentStatus.CANCELLED

	@property
	def is_recurring(self) -> bool:
		return self.recurrence_id is not None

	@property
	def duration_minutes(self) -> float:
		return (self.end - self.start).total_seconds() / 60

	def belongs_to(self, resource_id: Any) -> bool:
		"""Indica si la cita ocupa al recurso (profesional o equipo)."""
		if resource_id is None:
			return True
		return resource_id in (self.professional_id, self.team_id)

	@classmethod
	def from_dict(cls, data: Dict[str, Any]) -> "Appointment":
		"""
		Crea una cita desde un dict decodificado (claves snake_case).

		Raises:
			MalformedIntervalError: si start/end faltan o no se pueden interpretar,
				o el status no es un código conocido
		"""
		try:
			start = get_datetime(data["start"])
			end = get_datetime(data["end"])
		except (KeyError, ValueError) as e:
			raise MalformedIntervalError(f"Appointment {data.get('id')}: unparsable start/end ({e})")

		try:
			status = AppointmentStatus(data.get("status") or AppointmentStatus.SCHEDULED)
		except ValueError as e:
			raise MalformedIntervalError(f"Appointment {data.get('id')}: {e}")

		return cls(
			id=data.get("id"),
			start=start,
			end=end,
			professional_id=data.get("professional_id"),
			team_id=data.get("team_id"),
			company_id=data.get("company_id"),
			status=status,
			title=data.get("title"),
			recurrence_id=data.get("recurrence_id"),
			sequence_index=data.get("sequence_index"),
		)

	def to_dict(self) -> Dict[str, Any]:
		return asdict(self)
