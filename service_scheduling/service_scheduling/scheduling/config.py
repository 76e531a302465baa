"""
Scheduling Configuration

Tunable constants for expansion limits and calendar geometry.
Values can be overridden from a mapping or any object with attributes
(e.g. the settings object of the host application).
"""

from dataclasses import dataclass, fields
from typing import Any, Mapping, Optional


WEEK_MODE_CENTERED = "centered"
WEEK_MODE_MONDAY = "monday"


@dataclass(frozen=True)
class SchedulingConfig:
	"""
	Configuración del core de agendamiento.

	Geometría (vista día):
		hour_height_px: alto en px de una hora (H)
		min_height_px: alto mínimo de una cita para que siga visible
		base_hour: hora que corresponde a top=0
		visible_start_hour / visible_end_hour: rango visible sugerido a la UI
		slot_minutes: tamaño de cada slot de la grilla del día

	Vistas semana/mes:
		week_mode: "centered" (ancla ± 3 días) o "monday" (semana lunes-domingo)
		month_max_visible: citas visibles por celda antes de "+N more"

	Expansión:
		max_occurrences: límite duro de ocurrencias por llamada
		lookahead_days: horizonte inicial para next/last execution
		lookahead_cap_days: horizonte máximo (se duplica hasta este valor)
	"""

	hour_height_px: float = 48
	min_height_px: float = 24
	base_hour: int = 6
	visible_start_hour: int = 6
	visible_end_hour: int = 23
	slot_minutes: int = 30
	week_mode: str = WEEK_MODE_CENTERED
	month_max_visible: int = 2
	max_occurrences: int = 10000
	lookahead_days: int = 31
	lookahead_cap_days: int = 730

	@classmethod
	def from_settings(cls, settings: Optional[Any] = None) -> "SchedulingConfig":
		"""
		Construye la configuración desde un dict u objeto con atributos.

		Los valores ausentes o vacíos usan el default del campo.
		"""
		if settings is None:
			return cls()

		values = {}
		for field in fields(cls):
			if isinstance(settings, Mapping):
				value = settings.get(field.name)
			else:
				value = getattr(settings, field.name, None)

			if value is None or value == "":
				continue
			values[field.name] = value

		return cls(**values)


DEFAULT_CONFIG = SchedulingConfig()
