"""
Tests for scheduling/slots.py

Tests discrete slot generation for UI display.
"""

import unittest
from datetime import date, datetime

from service_scheduling.service_scheduling.doctype.appointment.appointment import Appointment
from service_scheduling.service_scheduling.doctype.scheduling_settings.scheduling_settings import SchedulingSettings
from service_scheduling.service_scheduling.scheduling.constants import ConflictType
from service_scheduling.service_scheduling.scheduling.slots import (
	generate_available_slots,
	get_available_slot_times,
)


class TestSlots(unittest.TestCase):
	"""Tests for slot generation functions."""

	def setUp(self):
		"""Set up settings with 60 minute slots, 08:00-12:00."""
		self.settings = SchedulingSettings.from_dict({
			"default_start_time": "08:00",
			"default_end_time": "12:00",
			"slot_duration_minutes": 60,
		})
		self.existing = [
			Appointment(
				id="APT-1",
				start=datetime(2026, 1, 5, 9, 0),
				end=datetime(2026, 1, 5, 10, 0),
				professional_id="PROF-1"
			)
		]

	def test_generate_slots_structure(self):
		"""Test that generated slots have correct structure."""
		slots = generate_available_slots(date(2026, 1, 5), "PROF-1", [], self.settings)

		self.assertEqual(len(slots), 4)
		for slot in slots:
			self.assertIn("start", slot)
			self.assertIn("end", slot)
			self.assertIn("is_available", slot)
			self.assertIn("conflicts", slot)
			self.assertLess(slot["start"], slot["end"])

	def test_busy_slot_not_available(self):
		"""Test a slot covered by an appointment is unavailable."""
		slots = generate_available_slots("2026-01-05", "PROF-1", self.existing, self.settings)

		availability = [(slot["start"].hour, slot["is_available"]) for slot in slots]
		self.assertEqual(availability, [(8, True), (9, False), (10, True), (11, True)])
		self.assertEqual(slots[1]["conflicts"][0].type, ConflictType.OVERLAP)

	def test_other_resource_does_not_block(self):
		"""Test appointments of other resources are ignored."""
		slots = generate_available_slots(date(2026, 1, 5), "PROF-2", self.existing, self.settings)

		self.assertTrue(all(slot["is_available"] for slot in slots))

	def test_duration_longer_than_step(self):
		"""Test slots every step minutes lasting the service duration."""
		settings = SchedulingSettings.from_dict({
			"default_start_time": "08:00",
			"default_end_time": "10:00",
			"slot_duration_minutes": 30,
		})

		slots = generate_available_slots(date(2026, 1, 5), "PROF-1", [], settings, duration_minutes=60)

		self.assertEqual([slot["start"].strftime("%H:%M") for slot in slots], ["08:00", "08:30", "09:00"])
		self.assertEqual(slots[-1]["end"], datetime(2026, 1, 5, 10, 0))

	def test_buffer_blocks_adjacent_slots(self):
		"""Test the buffer makes back-to-back slots unavailable."""
		settings = SchedulingSettings.from_dict({
			"default_start_time": "08:00",
			"default_end_time": "12:00",
			"slot_duration_minutes": 60,
			"buffer_minutes": 15,
		})

		slots = generate_available_slots(date(2026, 1, 5), "PROF-1", self.existing, settings)

		self.assertEqual([slot["is_available"] for slot in slots], [False, False, False, True])

	def test_no_slots_on_non_working_day(self):
		"""Test weekends and holidays produce no slots."""
		self.assertEqual(generate_available_slots(date(2026, 1, 10), "PROF-1", [], self.settings), [])

	def test_available_slot_times(self):
		"""Test the frontend format keeps only available slots."""
		slots = generate_available_slots(date(2026, 1, 5), "PROF-1", self.existing, self.settings)

		self.assertEqual(
			get_available_slot_times(slots),
			[
				{"startTime": "08:00", "endTime": "09:00"},
				{"startTime": "10:00", "endTime": "11:00"},
				{"startTime": "11:00", "endTime": "12:00"},
			]
		)
