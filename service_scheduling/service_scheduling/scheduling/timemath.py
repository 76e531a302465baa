"""
Time Math

Pure date/time helpers used across the scheduling core:
- Coercion of strings/values into date, datetime and time
- Timezone attachment (pytz)
- Period arithmetic (days, weeks, months) with day-of-month clamping
- Half-open interval overlap and gap measurement
"""

import calendar
import logging
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Any, Optional, Union

import pytz
from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

from .constants import (
	FIXED_PERIOD_DAYS,
	MONTH_PERIODS,
	MONTHDAY_FREQUENCIES,
	WEEKDAY_FREQUENCIES,
	Frequency,
)


logger = logging.getLogger(__name__)

DateLike = Union[date, datetime, str]
TimeLike = Union[time, timedelta, str]


def getdate(value: DateLike) -> date:
	"""
	Convierte un valor a datetime.date.

	Args:
		value: date, datetime o string ISO-8601 ("2026-01-15", "2026-01-15T09:00:00Z")

	Returns:
		datetime.date

	Raises:
		ValueError: si el string no se puede interpretar
	"""
	if isinstance(value, datetime):
		return value.date()
	if isinstance(value, date):
		return value
	if isinstance(value, str):
		return date_parser.isoparse(value.strip()).date()
	raise ValueError(f"Cannot convert {type(value)} to date")


def get_datetime(value: DateLike) -> datetime:
	"""
	Convierte un valor a datetime.datetime.

	Un date se interpreta como medianoche (naive). Los strings aceptan
	ISO-8601 con offset explícito, con "Z", o sin zona.
	"""
	if isinstance(value, datetime):
		return value
	if isinstance(value, date):
		return datetime.combine(value, time.min)
	if isinstance(value, str):
		return date_parser.isoparse(value.strip())
	raise ValueError(f"Cannot convert {type(value)} to datetime")


def get_time(time_value: TimeLike) -> time:
	"""
	Convierte diferentes formatos de tiempo a datetime.time.

	Args:
		time_value: puede ser time, timedelta (desde medianoche), o string HH:MM[:SS]

	Returns:
		datetime.time object
	"""
	if isinstance(time_value, time):
		return time_value
	elif isinstance(time_value, timedelta):
		# timedelta representa tiempo desde medianoche
		if time_value < timedelta(0) or time_value >= timedelta(days=1):
			raise ValueError(f"Time of day out of range: {time_value}")
		return (datetime.min + time_value).time()
	elif isinstance(time_value, str):
		return time.fromisoformat(time_value.strip())
	else:
		raise ValueError(f"Cannot convert {type(time_value)} to time")


def get_timezone(tz: Union[str, tzinfo, None]) -> Optional[tzinfo]:
	"""
	Resuelve un nombre de zona horaria (o tzinfo) a un objeto tzinfo.

	Un nombre desconocido se registra y se usa UTC.
	"""
	if tz is None or isinstance(tz, tzinfo):
		return tz

	try:
		return pytz.timezone(tz)
	except pytz.UnknownTimeZoneError:
		logger.warning("Invalid timezone '%s', using UTC", tz)
		return pytz.UTC


def localize(naive: datetime, tz: Optional[tzinfo]) -> datetime:
	"""
	Asigna una zona a un datetime naive (sin convertir la hora de pared).

	Las zonas pytz necesitan `localize` para resolver el offset correcto
	(DST); cualquier otro tzinfo se asigna con `replace`.
	"""
	if tz is None or naive.tzinfo is not None:
		return naive
	if hasattr(tz, "localize"):
		return tz.localize(naive)
	return naive.replace(tzinfo=tz)


def combine(day: date, time_of_day: time, tz: Optional[tzinfo] = None) -> datetime:
	"""Fecha + hora de pared, localizada en `tz` si se indica."""
	return localize(datetime.combine(day, time_of_day), tz)


def weekday_index(day: date) -> int:
	"""Día de la semana con 0=Sunday .. 6=Saturday."""
	return (day.weekday() + 1) % 7


def last_day_of_month(year: int, month: int) -> int:
	return calendar.monthrange(year, month)[1]


def clamp_day(year: int, month: int, day: int) -> date:
	"""
	Fecha (year, month, day) recortando day al último día del mes.

	Ej: clamp_day(2026, 2, 31) -> 2026-02-28
	"""
	return date(year, month, min(day, last_day_of_month(year, month)))


def months_between(start: date, end: date) -> int:
	"""Cantidad de meses calendario entre el mes de start y el de end."""
	return (end.year - start.year) * 12 + (end.month - start.month)


def add_interval(day: date, frequency: Frequency, count: int = 1) -> date:
	"""
	Avanza `day` en `count` períodos de `frequency`.

	Daily +count días, Weekly +7·count, Biweekly +14·count,
	Monthly +count meses, Quarterly +3·count meses, Yearly +12·count meses.
	Los pasos en meses recortan el día al último día del mes más corto
	(31 de enero + 1 mes -> 28/29 de febrero).
	"""
	frequency = Frequency(frequency)

	if frequency in FIXED_PERIOD_DAYS:
		return day + timedelta(days=FIXED_PERIOD_DAYS[frequency] * count)

	return day + relativedelta(months=MONTH_PERIODS[frequency] * count)


def matches_day(day: date, frequency: Frequency, rule_day: int) -> bool:
	"""
	Indica si `day` coincide con el `day` de la regla según su frecuencia.

	- Daily: siempre
	- Weekly/Biweekly: rule_day es día de semana (0=Sunday)
	- Monthly/Quarterly/Yearly: rule_day es día del mes, recortado al largo del mes
	"""
	frequency = Frequency(frequency)

	if frequency in WEEKDAY_FREQUENCIES:
		return weekday_index(day) == rule_day

	if frequency in MONTHDAY_FREQUENCIES:
		return day.day == min(rule_day, last_day_of_month(day.year, day.month))

	return True


def overlaps(a_start: Any, a_end: Any, b_start: Any, b_end: Any) -> bool:
	"""
	Test de overlap entre intervalos semiabiertos [start, end).

	Dos intervalos contiguos (a_end == b_start) NO se solapan.
	"""
	return a_start < b_end and b_start < a_end


def gap_minutes(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> float:
	"""
	Separación en minutos entre dos intervalos.

	0 si son contiguos, negativo si se solapan.
	"""
	if a_start <= b_start:
		gap = b_start - a_end
	else:
		gap = a_start - b_end
	return gap.total_seconds() / 60


def minutes_of_day(value: Union[datetime, time]) -> int:
	"""Minutos desde medianoche (se ignoran los segundos)."""
	return value.hour * 60 + value.minute
