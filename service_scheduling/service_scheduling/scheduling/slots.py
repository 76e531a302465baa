"""
Slot Generation Service

Generates discrete time slots for UI display, considering:
- Working window of the day (settings)
- Existing appointments of the resource
- Buffer and overlap policy (via conflict detection)
"""

import logging
from datetime import date, timedelta, tzinfo
from typing import Any, Dict, Iterable, List, Optional, Union

from service_scheduling.service_scheduling.doctype.scheduling_settings.scheduling_settings import SchedulingSettings
from .availability import get_working_window
from .overlap import Interval, find_conflicts
from .timemath import get_timezone, getdate


logger = logging.getLogger(__name__)


def generate_available_slots(
	target_date: Union[date, str],
	resource_id: Any,
	existing_appointments: Iterable[Any],
	settings: SchedulingSettings,
	duration_minutes: Optional[int] = None,
	tz: Union[str, tzinfo, None] = None
) -> List[Dict[str, Any]]:
	"""
	Genera slots discretos para UI.

	Args:
		target_date: fecha (date o YYYY-MM-DD)
		resource_id: profesional o equipo
		existing_appointments: citas comprometidas del recurso
		settings: Scheduling Settings
		duration_minutes: duración del servicio (default: slot_duration_minutes)
		tz: zona del horario laboral (None = naive)

	Returns:
		list[dict]: [
			{
				"start": datetime,
				"end": datetime,
				"is_available": True,
				"conflicts": []
			},
			...
		]

	Algoritmo:
		1. Obtener horario laboral del día (vacío si feriado / no laboral)
		2. Generar slots que empiezan cada slot_duration_minutes y duran duration_minutes
		3. Para cada slot, buscar conflictos contra las citas existentes
		4. Retornar lista ordenada
	"""
	target_date = getdate(target_date)
	step_minutes = settings.slot_duration_minutes
	duration = timedelta(minutes=duration_minutes or step_minutes)
	existing = list(existing_appointments)

	# 1. Horario laboral
	window = get_working_window(target_date, settings, get_timezone(tz))
	if window is None:
		return []

	slots = []

	# 2. Generar slots cada slot_duration_minutes
	current_slot_start = window["start"]

	while current_slot_start < window["end"]:
		current_slot_end = current_slot_start + duration

		# Si el slot se pasa del horario, terminar
		if current_slot_end > window["end"]:
			break

		# 3. Verificar conflictos para este slot
		conflicts = find_conflicts(
			Interval(start=current_slot_start, end=current_slot_end),
			resource_id,
			existing,
			settings
		)

		slots.append({
			"start": current_slot_start,
			"end": current_slot_end,
			"is_available": not conflicts,
			"conflicts": conflicts,
		})

		current_slot_start += timedelta(minutes=step_minutes)

	logger.debug(
		"generate_available_slots resource=%s date=%s: %d slot(s), %d available",
		resource_id, target_date, len(slots), sum(1 for slot in slots if slot["is_available"])
	)

	# 4. Ya están ordenados por construcción
	return slots


def get_available_slot_times(slots: List[Dict[str, Any]]) -> List[Dict[str, str]]:
	"""
	Solo los slots disponibles, en el formato {startTime, endTime} (HH:MM) del frontend.
	"""
	return [
		{"startTime": slot["start"].strftime("%H:%M"), "endTime": slot["end"].strftime("%H:%M")}
		for slot in slots
		if slot["is_available"]
	]
