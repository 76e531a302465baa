# Copyright (c) 2026, Sebastian Ortiz Valencia and Contributors
# See license.txt

"""
Tests for Appointment DocType

Tests validation and record conversion.
"""

import unittest
from datetime import datetime, timedelta

import pytz

from service_scheduling.service_scheduling.doctype.appointment.appointment import Appointment
from service_scheduling.service_scheduling.scheduling.constants import AppointmentStatus
from service_scheduling.service_scheduling.scheduling.exceptions import MalformedIntervalError


class TestAppointment(unittest.TestCase):
	"""Tests for Appointment DocType."""

	def setUp(self):
		"""Set up a valid appointment."""
		self.appointment = Appointment(
			id="APT-1",
			start=datetime(2026, 1, 5, 9, 0),
			end=datetime(2026, 1, 5, 10, 30),
			professional_id="PROF-1",
			team_id="TEAM-1",
			company_id="COMP-1"
		)

	def test_valid_appointment(self):
		"""Test a well-formed appointment passes validation."""
		self.appointment.validate()
		self.assertEqual(self.appointment.duration_minutes, 90)
		self.assertFalse(self.appointment.is_cancelled)
		self.assertFalse(self.appointment.is_recurring)

	def test_end_before_start(self):
		"""Test end <= start is rejected."""
		for end in (datetime(2026, 1, 5, 9, 0), datetime(2026, 1, 5, 8, 0)):
			appt = Appointment(id="APT-2", start=datetime(2026, 1, 5, 9, 0), end=end)
			with self.assertRaises(MalformedIntervalError):
				appt.validate()

	def test_naive_and_aware_mix(self):
		"""Test mixing naive and aware datetimes is rejected."""
		aware = pytz.UTC.localize(datetime(2026, 1, 5, 10, 0))
		appt = Appointment(id="APT-3", start=datetime(2026, 1, 5, 9, 0), end=aware)

		with self.assertRaises(MalformedIntervalError):
			appt.validate()

	def test_belongs_to(self):
		"""Test resource matching by professional or team."""
		self.assertTrue(self.appointment.belongs_to("PROF-1"))
		self.assertTrue(self.appointment.belongs_to("TEAM-1"))
		self.assertTrue(self.appointment.belongs_to(None))
		self.assertFalse(self.appointment.belongs_to("PROF-2"))

	def test_from_dict(self):
		"""Test conversion from a decoded record."""
		appt = Appointment.from_dict({
			"id": "APT-4",
			"start": "2026-01-05T09:00:00Z",
			"end": "2026-01-05T10:00:00Z",
			"status": AppointmentStatus.COMPLETED,
			"recurrence_id": "RR-1",
			"sequence_index": 3,
		})

		self.assertEqual(appt.end - appt.start, timedelta(hours=1))
		self.assertEqual(appt.status, AppointmentStatus.COMPLETED)
		self.assertTrue(appt.is_recurring)
		self.assertEqual(appt.to_dict()["sequence_index"], 3)

	def test_from_dict_missing_end(self):
		"""Test a record without end is malformed."""
		with self.assertRaises(MalformedIntervalError):
			Appointment.from_dict({"id": "APT-5", "start": "2026-01-05T09:00:00"})

	def test_from_dict_unknown_status(self):
		"""Test an unknown status code is malformed."""
		with self.assertRaises(MalformedIntervalError):
			Appointment.from_dict({
				"id": "APT-6",
				"start": "2026-01-05T09:00:00",
				"end": "2026-01-05T10:00:00",
				"status": 9,
			})
