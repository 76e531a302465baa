"""
Tests for scheduling/calendar_grid.py

Tests day geometry, week buckets, month cells, and skipping of malformed
appointments.
"""

import unittest
from datetime import date, datetime

from service_scheduling.service_scheduling.doctype.appointment.appointment import Appointment
from service_scheduling.service_scheduling.scheduling.calendar_grid import (
	compute_geometry,
	get_view_range,
	project,
)
from service_scheduling.service_scheduling.scheduling.config import SchedulingConfig
from service_scheduling.service_scheduling.scheduling.constants import AppointmentStatus
from service_scheduling.service_scheduling.scheduling.exceptions import ValidationError


def make_appointment(appt_id, start, end, **overrides):
	values = {"id": appt_id, "start": start, "end": end, "professional_id": "PROF-1"}
	values.update(overrides)
	return Appointment(**values)


class TestDayView(unittest.TestCase):
	"""Tests for the day view."""

	def test_day_view_geometry(self):
		"""Test top offset and minimum height of a short appointment."""
		appt = make_appointment("APT-1", datetime(2026, 1, 5, 9, 15), datetime(2026, 1, 5, 9, 45))

		grid = project([appt], "day", date(2026, 1, 5))
		placement = grid.placements[0]

		# ((9 - 6) * 60 + 15) * (48 / 60)
		self.assertEqual(placement.top_offset_px, 156)
		self.assertEqual(placement.height_px, 24)
		self.assertEqual(placement.slot_index, 18)
		self.assertFalse(placement.clipped)

	def test_day_view_slots(self):
		"""Test the full-day slot list and the visible subrange."""
		grid = project([], "day", "2026-01-05")

		self.assertEqual(len(grid.slots), 48)
		self.assertEqual(grid.slots[0].label, "00:00")
		self.assertEqual(grid.slots[-1].end_minute, 24 * 60)
		self.assertEqual(len(grid.hour_marks), 25)
		self.assertEqual(grid.hour_marks[-1], "24:00")
		self.assertEqual(grid.visible_slots[0].label, "06:00")
		self.assertEqual(grid.visible_slots[-1].label, "22:30")

	def test_compute_geometry(self):
		"""Test height scales with duration above the minimum."""
		self.assertEqual(compute_geometry(9 * 60, 11 * 60), (144, 96))
		self.assertEqual(compute_geometry(9 * 60, 9 * 60 + 10), (144, 24))

		config = SchedulingConfig(hour_height_px=60, base_hour=0, min_height_px=10)
		self.assertEqual(compute_geometry(60, 75, config), (60, 15))

	def test_config_from_settings(self):
		"""Test geometry overrides from a settings mapping; empty values keep defaults."""
		config = SchedulingConfig.from_settings({"hour_height_px": 60, "base_hour": "", "month_max_visible": None})

		self.assertEqual(config.hour_height_px, 60)
		self.assertEqual(config.base_hour, 6)
		self.assertEqual(config.month_max_visible, 2)
		self.assertEqual(SchedulingConfig.from_settings(), SchedulingConfig())

	def test_same_slot_keeps_each_offset(self):
		"""Test overlapping appointments in one slot keep their own geometry."""
		first = make_appointment("APT-1", datetime(2026, 1, 5, 9, 0), datetime(2026, 1, 5, 10, 0))
		second = make_appointment("APT-2", datetime(2026, 1, 5, 9, 10), datetime(2026, 1, 5, 9, 40))

		grid = project([second, first], "day", date(2026, 1, 5))
		placements = grid.slots[18].placements

		self.assertEqual([p.appointment.id for p in placements], ["APT-1", "APT-2"])
		self.assertEqual([p.top_offset_px for p in placements], [144, 152])

	def test_other_days_are_ignored(self):
		"""Test appointments on other days are not placed."""
		appt = make_appointment("APT-1", datetime(2026, 1, 6, 9, 0), datetime(2026, 1, 6, 10, 0))

		self.assertEqual(project([appt], "day", date(2026, 1, 5)).placements, [])

	def test_midnight_crossing_is_clipped(self):
		"""Test an appointment from the previous night is clipped to the day."""
		appt = make_appointment("APT-1", datetime(2026, 1, 4, 23, 0), datetime(2026, 1, 5, 1, 0))

		placement = project([appt], "day", date(2026, 1, 5)).placements[0]

		self.assertTrue(placement.clipped)
		self.assertEqual(placement.slot_index, 0)
		self.assertEqual(placement.height_px, 48)

	def test_cancelled_excluded_by_default(self):
		"""Test cancelled appointments are hidden unless requested."""
		appt = make_appointment(
			"APT-1", datetime(2026, 1, 5, 9, 0), datetime(2026, 1, 5, 10, 0),
			status=AppointmentStatus.CANCELLED
		)

		self.assertEqual(project([appt], "day", date(2026, 1, 5)).placements, [])
		self.assertEqual(len(project([appt], "day", date(2026, 1, 5), include_cancelled=True).placements), 1)

	def test_malformed_appointments_are_skipped(self):
		"""Test malformed records are logged and reported, not fatal."""
		appointments = [
			make_appointment("APT-OK", datetime(2026, 1, 5, 9, 0), datetime(2026, 1, 5, 10, 0)),
			make_appointment("APT-BAD", datetime(2026, 1, 5, 11, 0), datetime(2026, 1, 5, 10, 0)),
			{"id": "APT-UNPARSABLE", "start": "tomorrow", "end": "2026-01-05T10:00:00"},
			{"id": "APT-STATUS", "start": "2026-01-05T12:00:00", "end": "2026-01-05T13:00:00", "status": 9},
		]

		with self.assertLogs("service_scheduling.service_scheduling.scheduling.calendar_grid", level="WARNING"):
			grid = project(appointments, "day", date(2026, 1, 5))

		self.assertEqual([p.appointment.id for p in grid.placements], ["APT-OK"])
		self.assertEqual(grid.skipped, ["APT-BAD", "APT-UNPARSABLE", "APT-STATUS"])

	def test_unknown_view(self):
		"""Test an unknown view is rejected."""
		with self.assertRaises(ValidationError):
			project([], "year", date(2026, 1, 5))


class TestWeekView(unittest.TestCase):
	"""Tests for the week view."""

	def test_centered_week(self):
		"""Test the default week is the anchor plus and minus 3 days."""
		appointments = [
			make_appointment("APT-2", datetime(2026, 1, 7, 14, 0), datetime(2026, 1, 7, 15, 0)),
			make_appointment("APT-1", datetime(2026, 1, 7, 9, 0), datetime(2026, 1, 7, 10, 0)),
			make_appointment("APT-OUT", datetime(2026, 1, 11, 9, 0), datetime(2026, 1, 11, 10, 0)),
		]

		grid = project(appointments, "week", date(2026, 1, 7))

		self.assertEqual([bucket.date for bucket in grid.days][0], date(2026, 1, 4))
		self.assertEqual(grid.end_date, date(2026, 1, 10))
		self.assertEqual(len(grid.days), 7)

		wednesday = grid.days[3]
		self.assertEqual([appt.id for appt in wednesday.appointments], ["APT-1", "APT-2"])
		self.assertTrue(wednesday.has_appointment)
		self.assertFalse(grid.days[0].has_appointment)

	def test_monday_week_mode(self):
		"""Test the Monday-start week."""
		config = SchedulingConfig(week_mode="monday")

		self.assertEqual(get_view_range("week", date(2026, 1, 7), config), (date(2026, 1, 5), date(2026, 1, 11)))
		self.assertEqual(get_view_range("week", date(2026, 1, 11), config), (date(2026, 1, 5), date(2026, 1, 11)))


class TestMonthView(unittest.TestCase):
	"""Tests for the month view."""

	def test_leading_blanks_and_day_cells(self):
		"""Test April 2026 (starts on a Wednesday) has 3 blanks and 30 day cells."""
		grid = project([], "month", date(2026, 4, 15))

		self.assertEqual(grid.leading_blanks, 3)
		self.assertEqual(len(grid.cells), 33)
		self.assertTrue(all(cell.is_blank for cell in grid.cells[:3]))
		self.assertEqual(grid.cells[3].date, date(2026, 4, 1))
		self.assertEqual(grid.cells[-1].date, date(2026, 4, 30))

	def test_overflow_marker(self):
		"""Test cells with more than the visible maximum show +N more."""
		appointments = [
			make_appointment(f"APT-{hour}", datetime(2026, 4, 10, hour, 0), datetime(2026, 4, 10, hour, 30))
			for hour in (15, 9, 12)
		]

		grid = project(appointments, "month", date(2026, 4, 1))
		cell = grid.cells[3 + 9]

		self.assertEqual(cell.date, date(2026, 4, 10))
		self.assertTrue(cell.has_appointment)
		self.assertEqual([appt.id for appt in cell.visible_appointments], ["APT-9", "APT-12"])
		self.assertEqual(cell.overflow_count, 1)
		self.assertEqual(cell.more_label, "+1 more")
		self.assertIsNone(grid.cells[4].more_label)

	def test_to_dict(self):
		"""Test the serialized month grid."""
		appt = make_appointment("APT-1", datetime(2026, 4, 1, 9, 0), datetime(2026, 4, 1, 10, 0), title="Deep clean")

		data = project([appt], "month", date(2026, 4, 1)).to_dict()

		self.assertEqual(data["view"], "month")
		self.assertEqual(data["leading_blanks"], 3)
		self.assertIsNone(data["cells"][0]["date"])
		self.assertEqual(data["cells"][3]["appointments"][0]["title"], "Deep clean")
		self.assertEqual(data["cells"][3]["appointments"][0]["status"], "scheduled")
