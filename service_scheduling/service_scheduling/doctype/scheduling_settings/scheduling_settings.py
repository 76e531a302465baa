# Copyright (c) 2026, Sebastian Ortiz Valencia and contributors
# For license information, please see license.txt

"""
Scheduling Settings DocType

Configuración de agenda por compañía/recurso:
- Días laborales y horario por defecto
- Buffer entre citas y política de overlap
- Feriados (fechas excluidas por completo)
"""

from dataclasses import dataclass, field
from datetime import date, time
from typing import Any, Dict, FrozenSet, Iterable, Mapping, Optional, Union

from service_scheduling.service_scheduling.scheduling.constants import WEEKDAY_NAMES
from service_scheduling.service_scheduling.scheduling.exceptions import SettingsError
from service_scheduling.service_scheduling.scheduling.timemath import (
	get_time,
	getdate,
	weekday_index,
)


DEFAULT_WORKING_DAYS = frozenset({1, 2, 3, 4, 5})


def normalize_weekday(value: Union[int, str]) -> int:
	"""
	Convierte un día de semana a índice 0=Sunday..6=Saturday.

	Acepta enteros o nombres en inglés ("monday", "Mon").
	"""
	if isinstance(value, bool):
		raise SettingsError(f"Invalid weekday: {value!r}")

	if isinstance(value, int):
		if 0 <= value <= 6:
			return value
		raise SettingsError(f"Invalid weekday: {value!r}")

	name = str(value).strip().lower()
	for idx, weekday_name in enumerate(WEEKDAY_NAMES):
		if name == weekday_name or (len(name) >= 3 and weekday_name.startswith(name)):
			return idx

	raise SettingsError(f"Invalid weekday: {value!r}")


def _normalize_holidays(holidays: Optional[Union[Mapping, Iterable]]) -> Dict[date, Optional[str]]:
	"""Feriados como dict fecha -> nombre (None si no tiene nombre)."""
	if not holidays:
		return {}

	if isinstance(holidays, Mapping):
		return {getdate(day): name for day, name in holidays.items()}

	return {getdate(day): None for day in holidays}


@dataclass(frozen=True)
class SchedulingSettings:
	"""
	Scheduling Settings with validation.

	Validations:
	- default_start_time < default_end_time
	- buffer_minutes >= 0
	- slot_duration_minutes > 0
	- working_days dentro de 0..6
	"""

	working_days: FrozenSet[int] = DEFAULT_WORKING_DAYS
	default_start_time: time = time(8, 0)
	default_end_time: time = time(18, 0)
	buffer_minutes: int = 0
	allow_overlapping: bool = False
	holidays: Dict[date, Optional[str]] = field(default_factory=dict)
	slot_duration_minutes: int = 30
	auto_confirm: bool = False
	company_id: Optional[Any] = None

	def validate(self) -> None:
		"""
		Validación de la configuración.

		Raises:
			SettingsError: si el horario o los parámetros son inconsistentes
		"""
		if self.default_start_time >= self.default_end_time:
			raise SettingsError(
				f"default_start_time ({self.default_start_time.strftime('%H:%M')}) must be before "
				f"default_end_time ({self.default_end_time.strftime('%H:%M')})"
			)

		if self.buffer_minutes < 0:
			raise SettingsError(f"buffer_minutes must be >= 0 (got {self.buffer_minutes})")

		if self.slot_duration_minutes <= 0:
			raise SettingsError(f"slot_duration_minutes must be > 0 (got {self.slot_duration_minutes})")

		for day in self.working_days:
			if not isinstance(day, int) or not 0 <= day <= 6:
				raise SettingsError(f"Invalid working day: {day!r}")

	def is_working_day(self, day: date) -> bool:
		return weekday_index(day) in self.working_days

	def is_holiday(self, day: date) -> bool:
		return day in self.holidays

	def holiday_name(self, day: date) -> Optional[str]:
		return self.holidays.get(day)

	@classmethod
	def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "SchedulingSettings":
		"""
		Crea la configuración desde un dict decodificado.

		Los valores ausentes usan los defaults (resource.x or default).
		"""
		data = data or {}

		try:
			working_days = data.get("working_days")
			if working_days is None:
				working_days = DEFAULT_WORKING_DAYS
			else:
				working_days = frozenset(normalize_weekday(day) for day in working_days)

			settings = cls(
				working_days=working_days,
				default_start_time=get_time(data.get("default_start_time") or time(8, 0)),
				default_end_time=get_time(data.get("default_end_time") or time(18, 0)),
				buffer_minutes=int(data.get("buffer_minutes") or 0),
				allow_overlapping=bool(data.get("allow_overlapping", False)),
				holidays=_normalize_holidays(data.get("holidays")),
				slot_duration_minutes=int(data.get("slot_duration_minutes") or 30),
				auto_confirm=bool(data.get("auto_confirm", False)),
				company_id=data.get("company_id"),
			)
		except SettingsError:
			raise
		except (TypeError, ValueError) as e:
			raise SettingsError(f"Invalid scheduling settings: {e}")

		settings.validate()
		return settings
