"""
Recurrence Expansion Service

Turns a Recurrence Rule into concrete occurrence intervals for a window,
considering:
- Rule status and start/end date bounds
- Frequency cadence anchored at the rule's first occurrence
  (Biweekly counts fortnights from start_date, not every matching weekday)
- Day-of-month clamping for monthly frequencies
- A hard cap on occurrences per call
"""

import logging
from dataclasses import asdict, dataclass
from datetime import date, datetime, timedelta, tzinfo
from typing import Any, Dict, Iterator, List, Optional, Union

from service_scheduling.service_scheduling.doctype.recurrence_rule.recurrence_rule import RecurrenceRule
from .config import DEFAULT_CONFIG, SchedulingConfig
from .constants import FIXED_PERIOD_DAYS, MONTH_PERIODS, Frequency
from .exceptions import RangeTooLargeError, ValidationError
from .timemath import (
	DateLike,
	add_interval,
	clamp_day,
	combine,
	get_datetime,
	get_timezone,
	localize,
	months_between,
	weekday_index,
)


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Occurrence:
	"""Intervalo concreto generado por una regla (no persistido)."""

	rule_id: Any
	start: datetime
	end: datetime
	sequence_index: int

	def to_dict(self) -> Dict[str, Any]:
		return asdict(self)


class OccurrenceSequence:
	"""
	Secuencia perezosa y finita de ocurrencias.

	Cada iteración recalcula desde cero; no hay estado compartido entre
	iteraciones, así que la secuencia se puede recorrer varias veces.
	"""

	def __init__(
		self,
		rule: RecurrenceRule,
		window_start: datetime,
		window_end: datetime,
		zone: Optional[tzinfo],
		limit: int
	):
		self.rule = rule
		self.window_start = window_start
		self.window_end = window_end
		self.zone = zone
		self.limit = limit

	def __iter__(self) -> Iterator[Occurrence]:
		return _generate(self.rule, self.window_start, self.window_end, self.zone, self.limit)

	def first(self) -> Optional[Occurrence]:
		return next(iter(self), None)

	def to_list(self) -> List[Occurrence]:
		return list(self)


def expand(
	rule: RecurrenceRule,
	window_start: DateLike,
	window_end: DateLike,
	tz: Union[str, tzinfo, None] = None,
	config: Optional[SchedulingConfig] = None
) -> OccurrenceSequence:
	"""
	Expande una regla en ocurrencias para la ventana [window_start, window_end).

	Args:
		rule: Recurrence Rule
		window_start: inicio de la ventana (date, datetime o ISO string)
		window_end: fin de la ventana (exclusivo)
		tz: zona de la hora de pared de la regla (default: rule.timezone o la zona de la ventana)
		config: límites de expansión

	Returns:
		OccurrenceSequence: iterable reiniciable de Occurrence

	Raises:
		InvalidRuleError: si la regla está mal configurada
		RangeTooLargeError: si la ventana supera config.max_occurrences

	Algoritmo:
		1. Regla no activa o ventana fuera de [start_date, end_date] -> vacío
		2. Anclar el cursor en la primera ocurrencia >= max(start_date, window_start)
		   sobre un múltiplo exacto del período contado desde la primera ocurrencia
		3. Emitir start = fecha + rule.time, end = start + duration y avanzar
		4. Incluir solo ocurrencias con start < window_end y end > window_start
	"""
	config = config or DEFAULT_CONFIG
	rule.validate()

	zone = resolve_zone(rule, window_start, tz)
	start_dt = align(window_start, zone)
	end_dt = align(window_end, zone)

	if end_dt < start_dt:
		raise ValidationError(
			f"window_end ({end_dt.isoformat()}) is before window_start ({start_dt.isoformat()})"
		)

	# La estimación es una cota superior; solo si la supera se cuenta exacto
	estimate = _estimate_count(rule, _local_date(start_dt, zone), _local_date(end_dt, zone))
	if estimate > config.max_occurrences:
		count = _count_until(rule, start_dt, end_dt, zone, config.max_occurrences + 1)
		if count > config.max_occurrences:
			raise RangeTooLargeError(
				f"Rule {rule.id}: window {start_dt.isoformat()} - {end_dt.isoformat()} would produce "
				f"more than {config.max_occurrences} occurrences (estimated ~{estimate})",
				limit=config.max_occurrences
			)

	return OccurrenceSequence(rule, start_dt, end_dt, zone, config.max_occurrences)


def next_execution(
	rule: RecurrenceRule,
	now: DateLike,
	tz: Union[str, tzinfo, None] = None,
	config: Optional[SchedulingConfig] = None
) -> Optional[Occurrence]:
	"""
	Próxima ocurrencia con start >= now.

	Busca en un horizonte inicial (config.lookahead_days) y lo duplica
	hasta config.lookahead_cap_days. Retorna None si no hay ocurrencia.
	"""
	config = config or DEFAULT_CONFIG
	rule.validate()

	if not rule.is_active:
		return None

	zone = resolve_zone(rule, now, tz)
	now = align(now, zone)
	horizon = timedelta(days=config.lookahead_days)
	cap = timedelta(days=config.lookahead_cap_days)

	while True:
		for occurrence in expand(rule, now, now + horizon, tz=zone, config=config):
			if occurrence.start >= now:
				return occurrence

		if horizon >= cap:
			return None
		horizon = min(horizon * 2, cap)


def last_execution(
	rule: RecurrenceRule,
	now: DateLike,
	tz: Union[str, tzinfo, None] = None,
	config: Optional[SchedulingConfig] = None
) -> Optional[Occurrence]:
	"""
	Última ocurrencia con start < now (búsqueda simétrica hacia atrás).
	"""
	config = config or DEFAULT_CONFIG
	rule.validate()

	if not rule.is_active:
		return None

	zone = resolve_zone(rule, now, tz)
	now = align(now, zone)
	horizon = timedelta(days=config.lookahead_days)
	cap = timedelta(days=config.lookahead_cap_days)

	while True:
		latest = None
		for occurrence in expand(rule, now - horizon, now, tz=zone, config=config):
			if occurrence.start < now:
				latest = occurrence

		if latest is not None:
			return latest

		if horizon >= cap:
			return None
		horizon = min(horizon * 2, cap)


def refresh_executions(
	rule: RecurrenceRule,
	now: DateLike,
	tz: Union[str, tzinfo, None] = None,
	config: Optional[SchedulingConfig] = None
) -> RecurrenceRule:
	"""
	Copia de la regla con last_execution/next_execution recalculados.

	El cache de la regla no es autoritativo; siempre se recalcula.
	"""
	last_occurrence = last_execution(rule, now, tz=tz, config=config)
	next_occurrence = next_execution(rule, now, tz=tz, config=config)

	return rule.with_executions(
		last_occurrence.start if last_occurrence else None,
		next_occurrence.start if next_occurrence else None
	)


def resolve_zone(
	rule: RecurrenceRule,
	reference: DateLike,
	tz: Union[str, tzinfo, None] = None
) -> Optional[tzinfo]:
	"""
	Zona de la hora de pared de las ocurrencias.

	Prioridad: tz explícito, rule.timezone, zona de `reference`.
	"""
	if tz is not None:
		return get_timezone(tz)
	if rule.timezone:
		return get_timezone(rule.timezone)

	reference = get_datetime(reference)
	return reference.tzinfo


def align(value: DateLike, zone: Optional[tzinfo]) -> datetime:
	"""Convierte a datetime y localiza los valores naive en `zone`."""
	value = get_datetime(value)
	if value.tzinfo is None and zone is not None:
		return localize(value, zone)
	return value


def first_occurrence_date(rule: RecurrenceRule) -> date:
	"""
	Fecha de la primera ocurrencia (>= start_date) que cumple matches_day.

	Es el ancla desde la que se cuentan los períodos.
	"""
	frequency = Frequency(rule.frequency)
	start = rule.start_date

	if frequency == Frequency.DAILY:
		return start

	if frequency in FIXED_PERIOD_DAYS:
		return start + timedelta(days=(rule.day - weekday_index(start)) % 7)

	candidate = clamp_day(start.year, start.month, rule.day)
	if candidate < start:
		next_month = add_interval(start.replace(day=1), frequency, 1)
		candidate = clamp_day(next_month.year, next_month.month, rule.day)
	return candidate


def occurrence_date(rule: RecurrenceRule, anchor: date, index: int) -> date:
	"""
	Fecha de la ocurrencia número `index` contada desde el ancla.

	Las frecuencias mensuales se calculan desde el primer día del mes del
	ancla para no arrastrar el recorte (31 -> 28 -> 28 ...).
	"""
	frequency = Frequency(rule.frequency)

	if frequency in FIXED_PERIOD_DAYS:
		return add_interval(anchor, frequency, index)

	month_start = add_interval(anchor.replace(day=1), frequency, index)
	return clamp_day(month_start.year, month_start.month, rule.day)


def _first_index_on_or_after(rule: RecurrenceRule, anchor: date, lower: date) -> int:
	"""Índice de la primera ocurrencia con fecha >= lower."""
	if lower <= anchor:
		return 0

	frequency = Frequency(rule.frequency)

	if frequency in FIXED_PERIOD_DAYS:
		period = FIXED_PERIOD_DAYS[frequency]
		return -(-(lower - anchor).days // period)

	index = months_between(anchor, lower) // MONTH_PERIODS[frequency]
	while occurrence_date(rule, anchor, index) < lower:
		index += 1
	return index


def _local_date(value: datetime, zone: Optional[tzinfo]) -> date:
	"""Fecha calendario de `value` en la zona de la regla."""
	if zone is not None and value.tzinfo is not None:
		return value.astimezone(zone).date()
	return value.date()


def _span_days(rule: RecurrenceRule) -> int:
	"""Días hacia atrás que puede abarcar una ocurrencia que termina dentro de la ventana."""
	return rule.duration // (24 * 60) + 1


def _estimate_count(rule: RecurrenceRule, first_day: date, last_day: date) -> int:
	"""Cota superior de ocurrencias en [first_day, last_day] limitada a la vigencia de la regla."""
	first_day = max(first_day - timedelta(days=_span_days(rule)), rule.start_date)
	if rule.end_date is not None:
		last_day = min(last_day, rule.end_date)

	if last_day < first_day:
		return 0

	frequency = Frequency(rule.frequency)

	if frequency in FIXED_PERIOD_DAYS:
		return (last_day - first_day).days // FIXED_PERIOD_DAYS[frequency] + 1

	return months_between(first_day, last_day) // MONTH_PERIODS[frequency] + 1


def _count_until(
	rule: RecurrenceRule,
	window_start: datetime,
	window_end: datetime,
	zone: Optional[tzinfo],
	stop: int
) -> int:
	"""Cuenta ocurrencias reales en la ventana, deteniéndose al llegar a `stop`."""
	count = 0
	for _ in _generate(rule, window_start, window_end, zone, stop):
		count += 1
		if count >= stop:
			break
	return count


def _generate(
	rule: RecurrenceRule,
	window_start: datetime,
	window_end: datetime,
	zone: Optional[tzinfo],
	limit: int
) -> Iterator[Occurrence]:
	"""Generador interno; ver expand()."""
	# 1. Regla no activa o ventana fuera de vigencia
	if not rule.is_active:
		return

	if window_end <= combine(rule.start_date, datetime.min.time(), zone):
		return

	first_day = _local_date(window_start, zone)
	last_day = _local_date(window_end, zone)

	if rule.end_date is not None and first_day > rule.end_date:
		return

	# 2. Anclar el cursor en un múltiplo exacto del período
	anchor = first_occurrence_date(rule)
	lower = max(rule.start_date, first_day - timedelta(days=_span_days(rule)))
	upper = last_day if rule.end_date is None else min(last_day, rule.end_date)

	index = _first_index_on_or_after(rule, anchor, lower)
	duration = timedelta(minutes=rule.duration)
	emitted = 0

	# 3. Emitir y avanzar
	while True:
		cursor = occurrence_date(rule, anchor, index)
		if cursor > upper:
			break

		start = combine(cursor, rule.time, zone)
		end = start + duration
		if hasattr(end.tzinfo, "normalize"):
			# pytz: recalcular offset si la duración cruza un cambio de DST
			end = end.tzinfo.normalize(end)

		# 4. Recorte a la ventana (overlap parcial permitido)
		if start < window_end and end > window_start:
			emitted += 1
			if emitted > limit:
				raise RangeTooLargeError(
					f"Rule {rule.id}: more than {limit} occurrences in window",
					limit=limit
				)
			yield Occurrence(rule_id=rule.id, start=start, end=end, sequence_index=index)

		index += 1

	logger.debug(
		"Expanded rule %s (%s) over %s - %s: %d occurrence(s)",
		rule.id, Frequency(rule.frequency).name, window_start, window_end, emitted
	)


__all__ = [
	"Occurrence",
	"OccurrenceSequence",
	"expand",
	"next_execution",
	"last_execution",
	"refresh_executions",
	"first_occurrence_date",
	"occurrence_date",
]
