"""
Availability Service

Provides functions to calculate working availability for a resource,
considering:
- Scheduling Settings (working days, default start/end time)
- Holidays (whole day closed)
- Busy intervals from committed appointments (plus buffer)
"""

import logging
from datetime import date, datetime, timedelta, tzinfo
from typing import Any, Dict, Iterable, List, Optional

from service_scheduling.service_scheduling.doctype.scheduling_settings.scheduling_settings import SchedulingSettings
from .constants import WEEKDAY_NAMES
from .timemath import combine, weekday_index


logger = logging.getLogger(__name__)


def get_working_window(
	target_date: date,
	settings: SchedulingSettings,
	tz: Optional[tzinfo] = None
) -> Optional[Dict[str, datetime]]:
	"""
	Obtiene el horario laboral de un día.

	Args:
		target_date: fecha
		settings: Scheduling Settings del recurso
		tz: zona para localizar el intervalo (None = naive)

	Returns:
		dict {"start": datetime, "end": datetime} o None si el día no es
		laboral o es feriado
	"""
	if settings.is_holiday(target_date):
		return None

	if not settings.is_working_day(target_date):
		return None

	return {
		"start": combine(target_date, settings.default_start_time, tz),
		"end": combine(target_date, settings.default_end_time, tz),
	}


def get_working_hours_violations(start: datetime, end: datetime, settings: SchedulingSettings) -> List[str]:
	"""
	Motivos por los que [start, end) queda fuera del horario laboral.

	Compara la hora de pared de start/end (sin conversión de zona).

	Returns:
		list[str]: mensajes; vacío si el intervalo está dentro del horario
	"""
	reasons = []

	days = _dates_touched(start, end)
	non_working = [day for day in days if not settings.is_working_day(day)]
	for day in non_working:
		reasons.append(
			f"{WEEKDAY_NAMES[weekday_index(day)].capitalize()} {day.isoformat()} is not a working day"
		)

	window_label = (
		f"{settings.default_start_time.strftime('%H:%M')}-{settings.default_end_time.strftime('%H:%M')}"
	)

	if len(days) > 1:
		reasons.append(f"Interval spans more than one day (working hours {window_label})")
	elif (
		start.time() < settings.default_start_time
		or end.date() > start.date()  # termina a las 24:00
		or end.time() > settings.default_end_time
	):
		reasons.append(
			f"{start.strftime('%H:%M')}-{end.strftime('%H:%M')} is outside working hours {window_label}"
		)

	return reasons


def get_holidays_touched(start: datetime, end: datetime, settings: SchedulingSettings) -> List[date]:
	"""Feriados que caen dentro de [start, end)."""
	return [day for day in _dates_touched(start, end) if settings.is_holiday(day)]


def get_free_intervals(
	target_date: date,
	busy: Iterable[Any],
	settings: SchedulingSettings,
	tz: Optional[tzinfo] = None
) -> List[Dict[str, datetime]]:
	"""
	Intervalos libres de un día: horario laboral menos citas ocupadas.

	Args:
		target_date: fecha
		busy: citas/intervalos con atributos start/end ya filtrados al recurso
		settings: Scheduling Settings (buffer se suma a ambos lados si no se permite overlap)
		tz: zona del horario laboral

	Returns:
		list[dict]: intervalos {"start", "end"} ordenados
	"""
	window = get_working_window(target_date, settings, tz)
	if window is None:
		return []

	buffer = timedelta(minutes=0 if settings.allow_overlapping else settings.buffer_minutes)

	blocks = [{"start": item.start - buffer, "end": item.end + buffer} for item in busy]
	blocks = _merge_intervals(blocks)

	intervals = [window]
	for block in blocks:
		new_intervals = []
		for interval in intervals:
			new_intervals.extend(_interval_subtract(interval, block))
		intervals = new_intervals

	intervals.sort(key=lambda x: x["start"])

	logger.debug(
		"get_free_intervals %s: %d busy block(s), %d free interval(s)",
		target_date, len(blocks), len(intervals)
	)

	return intervals


def _dates_touched(start: datetime, end: datetime) -> List[date]:
	"""Fechas calendario que toca [start, end) (end exclusivo)."""
	last = (end - timedelta(microseconds=1)).date() if end > start else start.date()
	days = []
	current = start.date()
	while current <= last:
		days.append(current)
		current += timedelta(days=1)
	return days


def _merge_intervals(intervals: List[Dict[str, datetime]]) -> List[Dict[str, datetime]]:
	"""
	Une intervalos adyacentes o overlapping.

	Args:
		intervals: lista de intervalos {"start": datetime, "end": datetime}

	Returns:
		list: intervalos merged (nuevos dicts, la entrada no se modifica)
	"""
	if not intervals:
		return []

	ordered = sorted(intervals, key=lambda x: x["start"])

	merged = [dict(ordered[0])]

	for current in ordered[1:]:
		last_merged = merged[-1]

		# Si current se solapa o es adyacente a last_merged, merge
		if current["start"] <= last_merged["end"]:
			if current["end"] > last_merged["end"]:
				last_merged["end"] = current["end"]
		else:
			merged.append(dict(current))

	return merged


def _interval_subtract(
	interval: Dict[str, datetime],
	block: Dict[str, datetime]
) -> List[Dict[str, datetime]]:
	"""
	Resta un bloqueo de un intervalo.

	Args:
		interval: {"start": datetime, "end": datetime} - intervalo original
		block: {"start": datetime, "end": datetime} - bloqueo a restar

	Returns:
		list: lista de intervalos resultantes (puede ser 0, 1 o 2 intervalos)
	"""
	# Block no se solapa con interval
	if block["end"] <= interval["start"] or block["start"] >= interval["end"]:
		return [interval]

	result = []

	# Parte inicial antes del bloqueo
	if block["start"] > interval["start"]:
		result.append({"start": interval["start"], "end": block["start"]})

	# Parte final después del bloqueo
	if block["end"] < interval["end"]:
		result.append({"start": block["end"], "end": interval["end"]})

	return result
