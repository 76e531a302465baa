# Copyright (c) 2026, Sebastian Ortiz Valencia and contributors
# For license information, please see license.txt

"""
Recurrence Rule DocType

Regla de recurrencia de un servicio: frecuencia, día, hora y duración.
Las ocurrencias concretas se derivan con scheduling/recurrence.py.
"""

from dataclasses import asdict, dataclass, replace
from datetime import date, datetime, time
from typing import Any, Dict, Optional

from service_scheduling.service_scheduling.scheduling.constants import (
	MONTHDAY_FREQUENCIES,
	WEEKDAY_FREQUENCIES,
	Frequency,
	RuleStatus,
	ServiceType,
)
from service_scheduling.service_scheduling.scheduling.exceptions import InvalidRuleError
from service_scheduling.service_scheduling.scheduling.timemath import (
	get_datetime,
	get_time,
	getdate,
)


@dataclass(frozen=True)
class RecurrenceRule:
	"""
	Recurrence Rule with validations.

	Validations:
	- duration > 0 (minutos)
	- day 0..6 para Weekly/Biweekly, 1..31 para Monthly/Quarterly/Yearly
	- start_date <= end_date (si end_date está presente)
	"""

	id: Any
	company_id: Any
	customer_id: Any
	title: str
	frequency: Frequency
	day: int
	time: time
	duration: int
	start_date: date
	end_date: Optional[date] = None
	status: RuleStatus = RuleStatus.ACTIVE
	address: str = ""
	team_id: Optional[Any] = None
	notes: Optional[str] = None
	service_type: ServiceType = ServiceType.REGULAR
	timezone: Optional[str] = None
	last_execution: Optional[datetime] = None
	next_execution: Optional[datetime] = None

	def validate(self) -> None:
		"""
		Validación de la configuración.

		Raises:
			InvalidRuleError: si la regla no puede producir fechas correctas
		"""
		self._validate_frequency()
		self._validate_duration()
		self._validate_day()
		self._validate_dates()

	@property
	def is_active(self) -> bool:
		return self.status == RuleStatus.ACTIVE

	def _validate_frequency(self) -> None:
		"""Valida que frequency sea un código conocido."""
		try:
			Frequency(self.frequency)
		except ValueError:
			raise InvalidRuleError(f"Rule {self.id}: unknown frequency {self.frequency!r}")

	def _validate_duration(self) -> None:
		"""Valida que la duración sea un entero positivo de minutos."""
		if isinstance(self.duration, bool) or not isinstance(self.duration, int):
			raise InvalidRuleError(f"Rule {self.id}: duration must be an integer number of minutes")
		if self.duration <= 0:
			raise InvalidRuleError(f"Rule {self.id}: duration must be greater than 0 (got {self.duration})")

	def _validate_day(self) -> None:
		"""
		Valida `day` según la frecuencia.

		Daily ignora el valor.
		"""
		frequency = Frequency(self.frequency)

		if frequency in WEEKDAY_FREQUENCIES:
			if not isinstance(self.day, int) or not 0 <= self.day <= 6:
				raise InvalidRuleError(
					f"Rule {self.id}: day must be a weekday 0-6 for {frequency.name} (got {self.day!r})"
				)

		elif frequency in MONTHDAY_FREQUENCIES:
			if not isinstance(self.day, int) or not 1 <= self.day <= 31:
				raise InvalidRuleError(
					f"Rule {self.id}: day must be a day of month 1-31 for {frequency.name} (got {self.day!r})"
				)

	def _validate_dates(self) -> None:
		"""Valida que start_date <= end_date si ambos están presentes."""
		if self.start_date is None:
			raise InvalidRuleError(f"Rule {self.id}: start_date is required")

		if self.end_date is not None and self.end_date < self.start_date:
			raise InvalidRuleError(
				f"Rule {self.id}: end_date {self.end_date} is before start_date {self.start_date}"
			)

	def with_executions(
		self,
		last_execution: Optional[datetime],
		next_execution: Optional[datetime],
		status: Optional[RuleStatus] = None
	) -> "RecurrenceRule":
		"""Copia de la regla con el cache de ejecuciones actualizado."""
		return replace(
			self,
			last_execution=last_execution,
			next_execution=next_execution,
			status=self.status if status is None else status
		)

	@classmethod
	def from_dict(cls, data: Dict[str, Any]) -> "RecurrenceRule":
		"""
		Crea una regla desde un dict ya decodificado (claves snake_case).

		Convierte fechas, hora y enums; no valida la regla.
		"""
		try:
			return cls(
				id=data.get("id"),
				company_id=data.get("company_id"),
				customer_id=data.get("customer_id"),
				title=data.get("title") or "",
				frequency=Frequency(data["frequency"]),
				day=data.get("day"),
				time=get_time(data["time"]),
				duration=data.get("duration"),
				start_date=getdate(data["start_date"]),
				end_date=getdate(data["end_date"]) if data.get("end_date") else None,
				status=RuleStatus(data.get("status") or RuleStatus.ACTIVE),
				address=data.get("address") or "",
				team_id=data.get("team_id"),
				notes=data.get("notes"),
				service_type=ServiceType(data.get("service_type") or ServiceType.REGULAR),
				timezone=data.get("timezone"),
				last_execution=get_datetime(data["last_execution"]) if data.get("last_execution") else None,
				next_execution=get_datetime(data["next_execution"]) if data.get("next_execution") else None,
			)
		except KeyError as e:
			raise InvalidRuleError(f"Rule {data.get('id')}: missing field {e.args[0]}")
		except ValueError as e:
			raise InvalidRuleError(f"Rule {data.get('id')}: {e}")

	def to_dict(self) -> Dict[str, Any]:
		return asdict(self)
