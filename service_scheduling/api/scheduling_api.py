"""
Scheduling API

Entry points for the UI/API layer. Combines recurrence expansion, conflict
detection, slot generation and calendar projection for the typical use cases:
- Calendar view (day/week/month) with rule occurrences + committed appointments
- Validation of a proposed create/reschedule
- Available slots for a day

Every call receives its company/resource ids explicitly; nothing is read
from ambient state.
"""

import logging
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Any, Dict, Iterable, List, Mapping, Optional, Set, Tuple, Union

from service_scheduling.service_scheduling.doctype.appointment.appointment import Appointment
from service_scheduling.service_scheduling.doctype.recurrence_rule.recurrence_rule import RecurrenceRule
from service_scheduling.service_scheduling.doctype.scheduling_settings.scheduling_settings import SchedulingSettings
from service_scheduling.service_scheduling.scheduling.availability import get_free_intervals
from service_scheduling.service_scheduling.scheduling.calendar_grid import (
	CalendarGrid,
	VIEW_DAY,
	get_view_range,
	project,
)
from service_scheduling.service_scheduling.scheduling.config import DEFAULT_CONFIG, SchedulingConfig
from service_scheduling.service_scheduling.scheduling.constants import AppointmentStatus
from service_scheduling.service_scheduling.scheduling.overlap import (
	ScheduleValidation,
	_as_interval,
	summarize_conflicts,
	validate_schedule as check_conflicts,
)
from service_scheduling.service_scheduling.scheduling.recurrence import expand
from service_scheduling.service_scheduling.scheduling.slots import generate_available_slots
from service_scheduling.service_scheduling.scheduling.timemath import (
	DateLike,
	combine,
	get_datetime,
	get_timezone,
	getdate,
)
from .shared.validators import validate_view


logger = logging.getLogger(__name__)

Record = Union[Appointment, Mapping[str, Any]]


def materialize_occurrences(
	rule: RecurrenceRule,
	window_start: DateLike,
	window_end: DateLike,
	tz: Union[str, tzinfo, None] = None,
	config: Optional[SchedulingConfig] = None
) -> List[Appointment]:
	"""
	Ocurrencias de una regla como Appointments (Scheduled) para la ventana.

	El id es "<rule.id>-<sequence_index>"; recurrence_id y sequence_index
	permiten reconocer la ocurrencia si luego se persiste.
	"""
	return [
		Appointment(
			id=f"{rule.id}-{occurrence.sequence_index}",
			start=occurrence.start,
			end=occurrence.end,
			team_id=rule.team_id,
			company_id=rule.company_id,
			status=AppointmentStatus.SCHEDULED,
			title=rule.title,
			recurrence_id=rule.id,
			sequence_index=occurrence.sequence_index,
		)
		for occurrence in expand(rule, window_start, window_end, tz=tz, config=config)
	]


def get_calendar_view(
	view: str,
	anchor_date: DateLike,
	rules: Iterable[RecurrenceRule] = (),
	appointments: Iterable[Record] = (),
	company_id: Optional[Any] = None,
	resource_id: Optional[Any] = None,
	tz: Union[str, tzinfo, None] = None,
	config: Optional[SchedulingConfig] = None,
	include_cancelled: bool = False
) -> CalendarGrid:
	"""
	Citas visibles en la vista `view` para la fecha `anchor_date`.

	Args:
		view: "day", "week" o "month"
		anchor_date: fecha de referencia
		rules: reglas de recurrencia a materializar
		appointments: citas comprometidas (Appointment o dict decodificado)
		company_id: filtrar por compañía
		resource_id: filtrar por profesional/equipo
		tz: zona canónica de la vista (las ocurrencias se generan en ella)
		config: geometría y límites
		include_cancelled: mostrar citas Cancelled

	Returns:
		CalendarGrid

	Algoritmo:
		1. Calcular el rango de fechas de la vista
		2. Filtrar citas comprometidas por compañía/recurso
		3. Materializar las reglas en ese rango, omitiendo ocurrencias que ya
		   existen como cita comprometida (mismo recurrence_id + sequence_index)
		4. Proyectar todo en la grilla
	"""
	config = config or DEFAULT_CONFIG
	view = validate_view(view)
	zone = get_timezone(tz)

	# 1. Rango de la vista
	first, last = get_view_range(view, anchor_date, config)
	window_start = combine(first, time.min, zone)
	window_end = combine(last + timedelta(days=1), time.min, zone)

	# 2. Citas comprometidas
	committed = [
		item for item in appointments
		if _matches(item, company_id, resource_id)
	]
	already_committed = _committed_keys(committed)

	# 3. Reglas materializadas
	materialized = []
	for rule in rules:
		if company_id is not None and rule.company_id != company_id:
			continue
		if resource_id is not None and rule.team_id != resource_id:
			continue

		for appt in materialize_occurrences(rule, window_start, window_end, tz=zone, config=config):
			if (appt.recurrence_id, appt.sequence_index) in already_committed:
				continue
			materialized.append(appt)

	logger.debug(
		"get_calendar_view %s %s: %d committed, %d from rules",
		view, getdate(anchor_date), len(committed), len(materialized)
	)

	# 4. Proyección
	return project(committed + materialized, view, anchor_date, config, include_cancelled=include_cancelled)


def get_day_view(
	anchor_date: DateLike,
	rules: Iterable[RecurrenceRule] = (),
	appointments: Iterable[Record] = (),
	**kwargs: Any
) -> CalendarGrid:
	"""Citas del día (p.ej. hoy) distribuidas en la vista día."""
	return get_calendar_view(VIEW_DAY, anchor_date, rules, appointments, **kwargs)


def validate_schedule(
	candidate: Any,
	resource_id: Any,
	existing_appointments: Iterable[Appointment],
	settings: Optional[SchedulingSettings] = None,
	exclude_appointment_id: Optional[Any] = None,
	rules: Iterable[RecurrenceRule] = (),
	tz: Union[str, tzinfo, None] = None,
	config: Optional[SchedulingConfig] = None
) -> ScheduleValidation:
	"""
	Valida una creación o reprogramación.

	Además de las citas comprometidas, las ocurrencias de las reglas del
	recurso en los días del candidato también ocupan agenda.

	Returns:
		ScheduleValidation: ok=True sin conflictos, o la lista de conflictos
	"""
	existing = list(existing_appointments)
	rules = list(rules)

	if rules:
		interval = _as_interval(candidate)
		start = get_datetime(interval.start)
		end = get_datetime(interval.end)
		zone = get_timezone(tz) or start.tzinfo
		window_start = combine(start.date(), time.min, zone)
		window_end = combine(end.date() + timedelta(days=1), time.min, zone)

		existing.extend(_rule_occurrences(rules, resource_id, window_start, window_end, zone, config, existing))

	result = check_conflicts(
		candidate,
		resource_id,
		existing,
		settings,
		exclude_appointment_id=exclude_appointment_id
	)

	if not result.ok:
		logger.info(
			"Schedule validation for resource %s failed: %s",
			resource_id, summarize_conflicts(result.conflicts)
		)

	return result


def get_available_slots(
	target_date: DateLike,
	resource_id: Any,
	existing_appointments: Iterable[Appointment],
	settings: SchedulingSettings,
	duration_minutes: Optional[int] = None,
	rules: Iterable[RecurrenceRule] = (),
	tz: Union[str, tzinfo, None] = None,
	config: Optional[SchedulingConfig] = None
) -> List[Dict[str, Any]]:
	"""
	Slots del día para un recurso, incluyendo la ocupación de sus reglas.
	"""
	target_date = getdate(target_date)
	zone = get_timezone(tz)
	existing = list(existing_appointments)
	existing += _rule_busy(rules, resource_id, target_date, zone, config, existing)

	return generate_available_slots(
		target_date,
		resource_id,
		existing,
		settings,
		duration_minutes=duration_minutes,
		tz=zone
	)


def get_free_time(
	target_date: DateLike,
	resource_id: Any,
	existing_appointments: Iterable[Appointment],
	settings: SchedulingSettings,
	rules: Iterable[RecurrenceRule] = (),
	tz: Union[str, tzinfo, None] = None,
	config: Optional[SchedulingConfig] = None
) -> List[Dict[str, datetime]]:
	"""Intervalos libres del recurso en el día (horario laboral menos ocupación)."""
	target_date = getdate(target_date)
	zone = get_timezone(tz)
	existing = list(existing_appointments)

	busy = [
		appt for appt in existing
		if not appt.is_cancelled and appt.belongs_to(resource_id)
	]
	busy += _rule_busy(rules, resource_id, target_date, zone, config, existing)

	return get_free_intervals(target_date, busy, settings, zone)


class SchedulingFacade:
	"""
	Agrupa las operaciones con una configuración y zona fijas.

	Sin estado mutable: cada método es independiente.
	"""

	def __init__(self, config: Optional[SchedulingConfig] = None, tz: Union[str, tzinfo, None] = None):
		self.config = config or DEFAULT_CONFIG
		self.tz = get_timezone(tz)

	def calendar(self, view: str, anchor_date: DateLike, rules=(), appointments=(), **kwargs: Any) -> CalendarGrid:
		return get_calendar_view(view, anchor_date, rules, appointments, tz=self.tz, config=self.config, **kwargs)

	def day(self, anchor_date: DateLike, rules=(), appointments=(), **kwargs: Any) -> CalendarGrid:
		return self.calendar(VIEW_DAY, anchor_date, rules, appointments, **kwargs)

	def validate(self, candidate: Any, resource_id: Any, existing_appointments, settings=None, **kwargs: Any) -> ScheduleValidation:
		return validate_schedule(
			candidate, resource_id, existing_appointments, settings,
			tz=self.tz, config=self.config, **kwargs
		)

	def available_slots(self, target_date: DateLike, resource_id: Any, existing_appointments, settings, **kwargs: Any) -> List[Dict[str, Any]]:
		return get_available_slots(
			target_date, resource_id, existing_appointments, settings,
			tz=self.tz, config=self.config, **kwargs
		)

	def occurrences(self, rule: RecurrenceRule, window_start: DateLike, window_end: DateLike) -> List[Appointment]:
		return materialize_occurrences(rule, window_start, window_end, tz=self.tz, config=self.config)


def _rule_busy(
	rules: Iterable[RecurrenceRule],
	resource_id: Any,
	target_date: date,
	zone: Optional[tzinfo],
	config: Optional[SchedulingConfig],
	committed: Iterable[Record] = ()
) -> List[Appointment]:
	"""Ocurrencias de las reglas del recurso en `target_date`."""
	window_start = combine(target_date, time.min, zone)
	window_end = combine(target_date + timedelta(days=1), time.min, zone)
	return _rule_occurrences(rules, resource_id, window_start, window_end, zone, config, committed)


def _rule_occurrences(
	rules: Iterable[RecurrenceRule],
	resource_id: Any,
	window_start: datetime,
	window_end: datetime,
	zone: Optional[tzinfo],
	config: Optional[SchedulingConfig],
	committed: Iterable[Record] = ()
) -> List[Appointment]:
	"""
	Ocurrencias de las reglas del recurso en la ventana.

	Omite las que ya existen como cita comprometida (mismo recurrence_id +
	sequence_index), incluida la que se está reprogramando: esa cita se
	excluye por id y su ocurrencia no debe volver a ocupar su lugar.
	"""
	already_committed = _committed_keys(committed)
	occurrences = []

	for rule in rules:
		if rule.team_id != resource_id:
			continue
		for appt in materialize_occurrences(rule, window_start, window_end, tz=zone, config=config):
			if (appt.recurrence_id, appt.sequence_index) in already_committed:
				continue
			occurrences.append(appt)

	return occurrences


def _committed_keys(items: Iterable[Record]) -> Set[Tuple[Any, Any]]:
	"""Pares (recurrence_id, sequence_index) de las citas comprometidas."""
	return {
		(_field(item, "recurrence_id"), _field(item, "sequence_index"))
		for item in items
		if _field(item, "recurrence_id") is not None
	}


def _field(item: Record, name: str) -> Any:
	if isinstance(item, Mapping):
		return item.get(name)
	return getattr(item, name, None)


def _matches(item: Record, company_id: Optional[Any], resource_id: Optional[Any]) -> bool:
	"""Filtro por compañía y recurso (profesional o equipo)."""
	if company_id is not None and _field(item, "company_id") != company_id:
		return False
	if resource_id is not None and resource_id not in (_field(item, "professional_id"), _field(item, "team_id")):
		return False
	return True
