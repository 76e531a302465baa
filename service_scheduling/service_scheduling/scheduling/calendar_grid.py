"""
Calendar Grid Projection

Builds the view-model consumed by the day, week and month calendar views:
- Day view: half-hour slots with absolute pixel geometry per appointment
- Week view: seven day buckets (centered on the anchor or Monday-start)
- Month view: leading blank cells plus one cell per day, with overflow marker

No timezone conversion happens here: every appointment must already be
expressed in the caller's canonical zone.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, time, timedelta
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from service_scheduling.service_scheduling.doctype.appointment.appointment import Appointment
from .config import DEFAULT_CONFIG, WEEK_MODE_MONDAY, SchedulingConfig
from .constants import AppointmentStatus
from .exceptions import MalformedIntervalError, ValidationError
from .timemath import getdate, last_day_of_month, minutes_of_day, weekday_index


logger = logging.getLogger(__name__)

VIEW_DAY = "day"
VIEW_WEEK = "week"
VIEW_MONTH = "month"
VIEWS = (VIEW_DAY, VIEW_WEEK, VIEW_MONTH)

MINUTES_PER_DAY = 24 * 60


@dataclass(frozen=True)
class Placement:
	"""Geometría de una cita en la vista día."""

	appointment: Appointment
	slot_index: int
	top_offset_px: float
	height_px: float
	clipped: bool = False

	def to_dict(self) -> Dict[str, Any]:
		return {
			"appointment": _appointment_view(self.appointment),
			"slot_index": self.slot_index,
			"top_offset_px": self.top_offset_px,
			"height_px": self.height_px,
			"clipped": self.clipped,
		}


@dataclass(frozen=True)
class DaySlot:
	"""Slot de la grilla del día; placements son las citas que empiezan en él."""

	index: int
	start_minute: int
	end_minute: int
	placements: List[Placement] = field(default_factory=list)

	@property
	def label(self) -> str:
		return _minute_label(self.start_minute)

	def to_dict(self) -> Dict[str, Any]:
		return {
			"index": self.index,
			"start": _minute_label(self.start_minute),
			"end": _minute_label(self.end_minute),
			"placements": [placement.to_dict() for placement in self.placements],
		}


@dataclass(frozen=True)
class DayBucket:
	"""Día de la vista semana con sus citas ordenadas por start."""

	date: date
	appointments: List[Appointment] = field(default_factory=list)

	@property
	def has_appointment(self) -> bool:
		return bool(self.appointments)

	def to_dict(self) -> Dict[str, Any]:
		return {
			"date": self.date.isoformat(),
			"has_appointment": self.has_appointment,
			"appointments": [_appointment_view(appt) for appt in self.appointments],
		}


@dataclass(frozen=True)
class MonthCell:
	"""Celda de la vista mes; date es None para las celdas en blanco iniciales."""

	date: Optional[date]
	appointments: List[Appointment] = field(default_factory=list)
	max_visible: int = 2

	@property
	def is_blank(self) -> bool:
		return self.date is None

	@property
	def has_appointment(self) -> bool:
		return bool(self.appointments)

	@property
	def visible_appointments(self) -> List[Appointment]:
		return self.appointments[:self.max_visible]

	@property
	def overflow_count(self) -> int:
		return max(len(self.appointments) - self.max_visible, 0)

	@property
	def more_label(self) -> Optional[str]:
		if not self.overflow_count:
			return None
		return f"+{self.overflow_count} more"

	def to_dict(self) -> Dict[str, Any]:
		return {
			"date": self.date.isoformat() if self.date else None,
			"is_blank": self.is_blank,
			"has_appointment": self.has_appointment,
			"appointments": [_appointment_view(appt) for appt in self.appointments],
			"visible": [_appointment_view(appt) for appt in self.visible_appointments],
			"overflow_count": self.overflow_count,
			"more_label": self.more_label,
		}


@dataclass(frozen=True)
class CalendarGrid:
	"""
	Modelo de vista de una proyección.

	Solo se llena la colección de la vista pedida:
	- day: slots, hour_marks, visible_slots
	- week: days
	- month: cells, leading_blanks
	"""

	view: str
	anchor_date: date
	start_date: date
	end_date: date
	slots: List[DaySlot] = field(default_factory=list)
	hour_marks: List[str] = field(default_factory=list)
	visible_slots: List[DaySlot] = field(default_factory=list)
	days: List[DayBucket] = field(default_factory=list)
	cells: List[MonthCell] = field(default_factory=list)
	leading_blanks: int = 0
	skipped: List[Any] = field(default_factory=list)

	@property
	def placements(self) -> List[Placement]:
		return [placement for slot in self.slots for placement in slot.placements]

	def to_dict(self) -> Dict[str, Any]:
		data = {
			"view": self.view,
			"anchor_date": self.anchor_date.isoformat(),
			"start_date": self.start_date.isoformat(),
			"end_date": self.end_date.isoformat(),
			"skipped": list(self.skipped),
		}

		if self.view == VIEW_DAY:
			data["slots"] = [slot.to_dict() for slot in self.slots]
			data["hour_marks"] = list(self.hour_marks)
			data["visible_slot_indexes"] = [slot.index for slot in self.visible_slots]
		elif self.view == VIEW_WEEK:
			data["days"] = [bucket.to_dict() for bucket in self.days]
		else:
			data["leading_blanks"] = self.leading_blanks
			data["cells"] = [cell.to_dict() for cell in self.cells]

		return data


def project(
	appointments: Iterable[Union[Appointment, Mapping[str, Any]]],
	view: str,
	anchor_date: Union[date, str],
	config: Optional[SchedulingConfig] = None,
	include_cancelled: bool = False
) -> CalendarGrid:
	"""
	Proyecta citas en la grilla de la vista pedida.

	Args:
		appointments: citas (Appointment o dict decodificado)
		view: "day", "week" o "month"
		anchor_date: fecha de referencia de la vista
		config: geometría y parámetros de las vistas
		include_cancelled: incluir citas Cancelled (excluidas por defecto)

	Returns:
		CalendarGrid

	Raises:
		ValidationError: si la vista no existe

	Las citas malformadas (end <= start o ilegibles) se omiten, se registran
	y sus ids quedan en CalendarGrid.skipped.
	"""
	config = config or DEFAULT_CONFIG

	if view not in VIEWS:
		raise ValidationError(f"Unknown calendar view {view!r}; expected one of {', '.join(VIEWS)}")

	anchor = getdate(anchor_date)
	valid, skipped = _clean_appointments(appointments, include_cancelled)

	if view == VIEW_DAY:
		return _project_day(valid, anchor, config, skipped)
	if view == VIEW_WEEK:
		return _project_week(valid, anchor, config, skipped)
	return _project_month(valid, anchor, config, skipped)


def get_view_range(view: str, anchor_date: Union[date, str], config: Optional[SchedulingConfig] = None) -> Tuple[date, date]:
	"""
	Rango de fechas [first, last] (inclusivo) que cubre una vista.
	"""
	config = config or DEFAULT_CONFIG
	anchor = getdate(anchor_date)

	if view == VIEW_DAY:
		return anchor, anchor

	if view == VIEW_WEEK:
		if config.week_mode == WEEK_MODE_MONDAY:
			first = anchor - timedelta(days=anchor.weekday())
		else:
			first = anchor - timedelta(days=3)
		return first, first + timedelta(days=6)

	if view == VIEW_MONTH:
		first = anchor.replace(day=1)
		return first, first.replace(day=last_day_of_month(first.year, first.month))

	raise ValidationError(f"Unknown calendar view {view!r}; expected one of {', '.join(VIEWS)}")


def compute_geometry(
	start_minute: int,
	end_minute: int,
	config: Optional[SchedulingConfig] = None
) -> Tuple[float, float]:
	"""
	top/height en px de un rango de minutos del día.

	top = (start - base_hour*60) * (H/60)
	height = max((end - start) * (H/60), min_height_px)
	"""
	config = config or DEFAULT_CONFIG
	px_per_minute = config.hour_height_px / 60

	top = (start_minute - config.base_hour * 60) * px_per_minute
	height = max((end_minute - start_minute) * px_per_minute, config.min_height_px)
	return top, height


def _project_day(
	appointments: List[Appointment],
	anchor: date,
	config: SchedulingConfig,
	skipped: List[Any]
) -> CalendarGrid:
	"""Vista día: slots de config.slot_minutes sobre 00:00-24:00."""
	slot_minutes = config.slot_minutes
	slot_count = MINUTES_PER_DAY // slot_minutes

	slots = [
		DaySlot(index=idx, start_minute=idx * slot_minutes, end_minute=(idx + 1) * slot_minutes)
		for idx in range(slot_count)
	]

	for appt in _sorted(appointments):
		span = _minutes_on_day(appt, anchor)
		if span is None:
			continue

		start_minute, end_minute, clipped = span
		top, height = compute_geometry(start_minute, end_minute, config)
		slot_index = min(start_minute // slot_minutes, slot_count - 1)

		slots[slot_index].placements.append(Placement(
			appointment=appt,
			slot_index=slot_index,
			top_offset_px=top,
			height_px=height,
			clipped=clipped
		))

	visible_start = config.visible_start_hour * 60
	visible_end = config.visible_end_hour * 60

	return CalendarGrid(
		view=VIEW_DAY,
		anchor_date=anchor,
		start_date=anchor,
		end_date=anchor,
		slots=slots,
		hour_marks=[_minute_label(hour * 60) for hour in range(25)],
		visible_slots=[slot for slot in slots if visible_start <= slot.start_minute < visible_end],
		skipped=skipped
	)


def _project_week(
	appointments: List[Appointment],
	anchor: date,
	config: SchedulingConfig,
	skipped: List[Any]
) -> CalendarGrid:
	"""Vista semana: 7 días, cada uno con las citas cuya fecha de inicio es ese día."""
	first, last = get_view_range(VIEW_WEEK, anchor, config)
	by_date = _group_by_start_date(appointments)

	days = []
	current = first
	while current <= last:
		days.append(DayBucket(date=current, appointments=by_date.get(current, [])))
		current += timedelta(days=1)

	return CalendarGrid(
		view=VIEW_WEEK,
		anchor_date=anchor,
		start_date=first,
		end_date=last,
		days=days,
		skipped=skipped
	)


def _project_month(
	appointments: List[Appointment],
	anchor: date,
	config: SchedulingConfig,
	skipped: List[Any]
) -> CalendarGrid:
	"""
	Vista mes: celdas en blanco para los días de semana anteriores al día 1
	(cantidad = weekday del día 1, con 0=Sunday) y una celda por día.
	"""
	first, last = get_view_range(VIEW_MONTH, anchor, config)
	by_date = _group_by_start_date(appointments)
	leading_blanks = weekday_index(first)

	cells = [MonthCell(date=None, max_visible=config.month_max_visible) for _ in range(leading_blanks)]

	for day_number in range(1, last.day + 1):
		current = first.replace(day=day_number)
		cells.append(MonthCell(
			date=current,
			appointments=by_date.get(current, []),
			max_visible=config.month_max_visible
		))

	return CalendarGrid(
		view=VIEW_MONTH,
		anchor_date=anchor,
		start_date=first,
		end_date=last,
		cells=cells,
		leading_blanks=leading_blanks,
		skipped=skipped
	)


def _clean_appointments(
	appointments: Iterable[Union[Appointment, Mapping[str, Any]]],
	include_cancelled: bool
) -> Tuple[List[Appointment], List[Any]]:
	"""
	Separa citas válidas de malformadas.

	Returns:
		(válidas, ids omitidos)
	"""
	valid = []
	skipped = []

	for item in appointments:
		try:
			appt = Appointment.from_dict(item) if isinstance(item, Mapping) else item
			appt.validate()
		except MalformedIntervalError as e:
			item_id = item.get("id") if isinstance(item, Mapping) else getattr(item, "id", None)
			logger.warning("Data quality: skipping appointment %s from calendar grid: %s", item_id, e)
			skipped.append(item_id)
			continue

		if appt.is_cancelled and not include_cancelled:
			continue

		valid.append(appt)

	return valid, skipped


def _minutes_on_day(appt: Appointment, day: date) -> Optional[Tuple[int, int, bool]]:
	"""
	Rango de minutos [start, end] de la cita dentro de `day`.

	Returns:
		(start_minute, end_minute, clipped) o None si la cita no toca el día
	"""
	start_date = appt.start.date()
	end_date = appt.end.date()

	if start_date > day:
		return None
	if end_date < day or (end_date == day and appt.end.time() == time.min):
		return None

	clipped = False

	if start_date == day:
		start_minute = minutes_of_day(appt.start)
	else:
		start_minute = 0
		clipped = True

	if end_date == day:
		end_minute = minutes_of_day(appt.end)
	else:
		end_minute = MINUTES_PER_DAY
		# terminar exactamente a las 24:00 no es recorte
		clipped = clipped or not (end_date == day + timedelta(days=1) and appt.end.time() == time.min)

	return start_minute, end_minute, clipped


def _group_by_start_date(appointments: List[Appointment]) -> Dict[date, List[Appointment]]:
	"""Agrupa por fecha calendario de inicio, cada grupo ordenado por start."""
	groups: Dict[date, List[Appointment]] = {}
	for appt in _sorted(appointments):
		groups.setdefault(appt.start.date(), []).append(appt)
	return groups


def _sorted(appointments: List[Appointment]) -> List[Appointment]:
	return sorted(appointments, key=lambda appt: (appt.start, appt.end))


def _minute_label(minute: int) -> str:
	return f"{minute // 60:02d}:{minute % 60:02d}"


def _appointment_view(appt: Appointment) -> Dict[str, Any]:
	return {
		"id": appt.id,
		"title": appt.title,
		"start": appt.start.isoformat(),
		"end": appt.end.isoformat(),
		"status": AppointmentStatus(appt.status).name.lower(),
		"professional_id": appt.professional_id,
		"team_id": appt.team_id,
		"recurrence_id": appt.recurrence_id,
	}
