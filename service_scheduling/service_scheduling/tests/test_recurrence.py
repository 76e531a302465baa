"""
Tests for scheduling/recurrence.py

Tests occurrence expansion per frequency, window clipping, execution lookups,
and the occurrence cap.
"""

import unittest
from datetime import date, datetime, time, timedelta

from service_scheduling.service_scheduling.doctype.recurrence_rule.recurrence_rule import RecurrenceRule
from service_scheduling.service_scheduling.scheduling.config import SchedulingConfig
from service_scheduling.service_scheduling.scheduling.constants import Frequency, RuleStatus
from service_scheduling.service_scheduling.scheduling.exceptions import (
	InvalidRuleError,
	RangeTooLargeError,
	ValidationError,
)
from service_scheduling.service_scheduling.scheduling.recurrence import (
	expand,
	first_occurrence_date,
	last_execution,
	next_execution,
	refresh_executions,
)


def make_rule(**overrides):
	"""Weekly rule on Mondays at 09:00 for 60 minutes, from 2026-01-05."""
	values = {
		"id": "RR-0001",
		"company_id": "COMP-1",
		"customer_id": "CUST-1",
		"title": "Weekly cleaning",
		"frequency": Frequency.WEEKLY,
		"day": 1,
		"time": time(9, 0),
		"duration": 60,
		"start_date": date(2026, 1, 5),
	}
	values.update(overrides)
	return RecurrenceRule(**values)


class TestRecurrenceExpansion(unittest.TestCase):
	"""Tests for expand()."""

	def test_weekly_four_occurrences_in_28_days(self):
		"""Test a weekly rule yields 4 occurrences over 28 days."""
		rule = make_rule()
		occurrences = expand(rule, date(2026, 1, 5), date(2026, 2, 2)).to_list()

		self.assertEqual(len(occurrences), 4)
		self.assertEqual(
			[occ.start for occ in occurrences],
			[datetime(2026, 1, day, 9, 0) for day in (5, 12, 19, 26)]
		)
		self.assertEqual([occ.sequence_index for occ in occurrences], [0, 1, 2, 3])
		self.assertEqual(occurrences[0].end, datetime(2026, 1, 5, 10, 0))
		self.assertEqual(occurrences[0].rule_id, "RR-0001")

	def test_weekly_start_date_not_on_rule_day(self):
		"""Test the first occurrence is the first matching weekday after start_date."""
		rule = make_rule(start_date=date(2026, 1, 7))

		self.assertEqual(first_occurrence_date(rule), date(2026, 1, 12))
		first = expand(rule, date(2026, 1, 1), date(2026, 2, 1)).first()
		self.assertEqual(first.start, datetime(2026, 1, 12, 9, 0))

	def test_biweekly_occurrences_are_14_days_apart(self):
		"""Test biweekly cadence never emits consecutive weeks."""
		rule = make_rule(frequency=Frequency.BIWEEKLY)
		occurrences = expand(rule, date(2026, 1, 1), date(2026, 4, 1)).to_list()

		self.assertGreater(len(occurrences), 1)
		for previous, current in zip(occurrences, occurrences[1:]):
			self.assertEqual(current.start - previous.start, timedelta(days=14))

	def test_biweekly_off_week_is_empty(self):
		"""Test a window covering only the off week yields nothing."""
		rule = make_rule(frequency=Frequency.BIWEEKLY)

		self.assertEqual(expand(rule, date(2026, 1, 12), date(2026, 1, 19)).to_list(), [])

		on_week = expand(rule, date(2026, 1, 19), date(2026, 1, 26)).to_list()
		self.assertEqual(len(on_week), 1)
		self.assertEqual(on_week[0].sequence_index, 1)

	def test_monthly_day_31_clamps_in_february(self):
		"""Test day 31 falls on Feb 28, and on Feb 29 in a leap year."""
		rule = make_rule(frequency=Frequency.MONTHLY, day=31, start_date=date(2026, 1, 31))
		february = expand(rule, date(2026, 2, 1), date(2026, 3, 1)).to_list()

		self.assertEqual(len(february), 1)
		self.assertEqual(february[0].start, datetime(2026, 2, 28, 9, 0))

		leap_rule = make_rule(frequency=Frequency.MONTHLY, day=31, start_date=date(2028, 1, 31))
		leap_february = expand(leap_rule, date(2028, 2, 1), date(2028, 3, 1)).to_list()

		self.assertEqual(len(leap_february), 1)
		self.assertEqual(leap_february[0].start, datetime(2028, 2, 29, 9, 0))

	def test_monthly_clamp_does_not_carry_over(self):
		"""Test March returns to day 31 after a clamped February."""
		rule = make_rule(frequency=Frequency.MONTHLY, day=31, start_date=date(2026, 1, 31))
		march = expand(rule, date(2026, 3, 1), date(2026, 4, 1)).to_list()

		self.assertEqual([occ.start.date() for occ in march], [date(2026, 3, 31)])

	def test_quarterly_and_yearly(self):
		"""Test quarterly and yearly cadence."""
		quarterly = make_rule(frequency=Frequency.QUARTERLY, day=15, start_date=date(2026, 1, 1))
		dates = [occ.start.date() for occ in expand(quarterly, date(2026, 1, 1), date(2027, 1, 1))]

		self.assertEqual(dates, [date(2026, 1, 15), date(2026, 4, 15), date(2026, 7, 15), date(2026, 10, 15)])

		yearly = make_rule(frequency=Frequency.YEARLY, day=15, start_date=date(2026, 6, 1))
		dates = [occ.start.date() for occ in expand(yearly, date(2026, 1, 1), date(2029, 1, 1))]

		self.assertEqual(dates, [date(2026, 6, 15), date(2027, 6, 15), date(2028, 6, 15)])

	def test_end_date_bounds_expansion(self):
		"""Test occurrences stop at end_date (inclusive)."""
		rule = make_rule(end_date=date(2026, 1, 19))
		occurrences = expand(rule, date(2026, 1, 1), date(2026, 3, 1)).to_list()

		self.assertEqual(len(occurrences), 3)
		self.assertEqual(occurrences[-1].start, datetime(2026, 1, 19, 9, 0))

	def test_window_outside_rule_bounds(self):
		"""Test windows before start_date or after end_date are empty."""
		rule = make_rule(end_date=date(2026, 2, 1))

		self.assertEqual(expand(rule, date(2025, 12, 1), date(2026, 1, 5)).to_list(), [])
		self.assertEqual(expand(rule, date(2026, 2, 2), date(2026, 3, 1)).to_list(), [])

	def test_inactive_rule_is_empty(self):
		"""Test paused and completed rules produce nothing."""
		for status in (RuleStatus.PAUSED, RuleStatus.COMPLETED):
			rule = make_rule(status=status)
			self.assertEqual(expand(rule, date(2026, 1, 1), date(2026, 2, 1)).to_list(), [])

	def test_partial_overlap_at_window_start(self):
		"""Test an occurrence that started before the window but ends inside it is included."""
		rule = make_rule(frequency=Frequency.DAILY, day=None, time=time(23, 0), duration=120)
		occurrences = expand(rule, datetime(2026, 1, 6, 0, 0), datetime(2026, 1, 7, 0, 0)).to_list()

		self.assertEqual(
			[occ.start for occ in occurrences],
			[datetime(2026, 1, 5, 23, 0), datetime(2026, 1, 6, 23, 0)]
		)

	def test_expand_is_restartable_and_idempotent(self):
		"""Test iterating twice and calling twice give identical output."""
		rule = make_rule()
		sequence = expand(rule, date(2026, 1, 1), date(2026, 3, 1))

		self.assertEqual(list(sequence), list(sequence))
		self.assertEqual(sequence.to_list(), expand(rule, date(2026, 1, 1), date(2026, 3, 1)).to_list())

	def test_timezone_localization_and_dst(self):
		"""Test occurrences keep their wall-clock time across a DST change."""
		rule = make_rule(day=0, start_date=date(2026, 3, 1), timezone="America/New_York")
		occurrences = expand(rule, date(2026, 3, 1), date(2026, 3, 15)).to_list()

		self.assertEqual(len(occurrences), 2)
		self.assertEqual([occ.start.hour for occ in occurrences], [9, 9])
		self.assertEqual(occurrences[0].start.utcoffset(), timedelta(hours=-5))
		self.assertEqual(occurrences[1].start.utcoffset(), timedelta(hours=-4))

	def test_window_end_before_start(self):
		"""Test an inverted window is rejected."""
		with self.assertRaises(ValidationError):
			expand(make_rule(), date(2026, 2, 1), date(2026, 1, 1))


class TestRecurrenceErrors(unittest.TestCase):
	"""Tests for invalid rules and the occurrence cap."""

	def test_invalid_day_for_frequency(self):
		"""Test weekday 7 and day-of-month 0 are rejected."""
		with self.assertRaises(InvalidRuleError):
			expand(make_rule(day=7), date(2026, 1, 1), date(2026, 2, 1))

		with self.assertRaises(InvalidRuleError):
			expand(make_rule(frequency=Frequency.MONTHLY, day=0), date(2026, 1, 1), date(2026, 2, 1))

	def test_invalid_duration(self):
		"""Test zero or negative duration is rejected."""
		for duration in (0, -30):
			with self.assertRaises(InvalidRuleError):
				expand(make_rule(duration=duration), date(2026, 1, 1), date(2026, 2, 1))

	def test_end_date_before_start_date(self):
		"""Test end_date < start_date is rejected."""
		with self.assertRaises(InvalidRuleError):
			expand(make_rule(end_date=date(2026, 1, 1)), date(2026, 1, 1), date(2026, 2, 1))

	def test_range_too_large(self):
		"""Test a daily rule over decades exceeds the cap."""
		rule = make_rule(frequency=Frequency.DAILY, day=None, start_date=date(2000, 1, 1))

		with self.assertRaises(RangeTooLargeError) as ctx:
			expand(rule, date(2000, 1, 1), date(2040, 1, 1))

		self.assertEqual(ctx.exception.limit, 10000)

	def test_range_cap_is_configurable(self):
		"""Test a small cap rejects a short window."""
		rule = make_rule(frequency=Frequency.DAILY, day=None)
		config = SchedulingConfig(max_occurrences=5)

		with self.assertRaises(RangeTooLargeError):
			expand(rule, date(2026, 1, 5), date(2026, 1, 15), config=config)

	def test_window_exactly_at_cap(self):
		"""Test a window holding exactly the cap is expanded, one more day is rejected."""
		rule = make_rule(frequency=Frequency.DAILY, day=None, start_date=date(2026, 1, 1))
		config = SchedulingConfig(max_occurrences=10)

		occurrences = list(expand(rule, date(2026, 1, 1), date(2026, 1, 11), config=config))

		self.assertEqual(len(occurrences), 10)
		self.assertEqual(occurrences[-1].start, datetime(2026, 1, 10, 9, 0))

		with self.assertRaises(RangeTooLargeError):
			expand(rule, date(2026, 1, 1), date(2026, 1, 12), config=config)


class TestExecutions(unittest.TestCase):
	"""Tests for next/last execution lookups."""

	def test_next_and_last_execution(self):
		"""Test lookups around a mid-week now."""
		rule = make_rule()
		now = datetime(2026, 1, 14, 12, 0)

		self.assertEqual(next_execution(rule, now).start, datetime(2026, 1, 19, 9, 0))
		self.assertEqual(last_execution(rule, now).start, datetime(2026, 1, 12, 9, 0))

	def test_next_execution_extends_horizon(self):
		"""Test a distant occurrence is found by widening the horizon."""
		rule = make_rule(frequency=Frequency.YEARLY, day=15, start_date=date(2026, 6, 1))

		self.assertEqual(next_execution(rule, datetime(2026, 1, 14)).start, datetime(2026, 6, 15, 9, 0))

	def test_no_upcoming_occurrence(self):
		"""Test finished and not-yet-started rules."""
		finished = make_rule(end_date=date(2026, 1, 10))
		now = datetime(2026, 1, 14, 12, 0)

		self.assertIsNone(next_execution(finished, now))
		self.assertEqual(last_execution(finished, now).start, datetime(2026, 1, 5, 9, 0))

		future = make_rule(start_date=date(2026, 3, 2))
		self.assertIsNone(last_execution(future, now))

	def test_refresh_executions(self):
		"""Test the cached execution fields are recomputed on a copy."""
		rule = make_rule(next_execution=datetime(2020, 1, 1))
		refreshed = refresh_executions(rule, datetime(2026, 1, 14, 12, 0))

		self.assertEqual(refreshed.last_execution, datetime(2026, 1, 12, 9, 0))
		self.assertEqual(refreshed.next_execution, datetime(2026, 1, 19, 9, 0))
		self.assertEqual(rule.next_execution, datetime(2020, 1, 1))
