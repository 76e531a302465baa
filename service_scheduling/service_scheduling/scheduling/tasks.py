"""
Scheduled Tasks

Batch jobs the host application runs periodically:
- refresh_recurrence_executions: recomputes cached last/next execution
  of recurrence rules and completes rules whose end date has passed
"""

import logging
from datetime import datetime, tzinfo
from typing import Iterable, List, Optional, Tuple, Union

from service_scheduling.service_scheduling.doctype.recurrence_rule.recurrence_rule import RecurrenceRule
from .config import SchedulingConfig
from .constants import RuleStatus
from .exceptions import SchedulingError
from .recurrence import align, last_execution, next_execution, resolve_zone


logger = logging.getLogger(__name__)


def refresh_recurrence_executions(
	rules: Iterable[RecurrenceRule],
	now: datetime,
	tz: Union[str, tzinfo, None] = None,
	config: Optional[SchedulingConfig] = None
) -> Tuple[List[RecurrenceRule], int]:
	"""
	Recalcula last_execution/next_execution de un lote de reglas.

	Algoritmo:
		1. Para cada regla activa:
			- Calcular última y próxima ocurrencia respecto a now
			- Si end_date ya pasó y no hay próxima ocurrencia, marcar Completed
		2. Las reglas Paused/Completed se devuelven sin cambios
		3. Si una regla falla (configuración inválida), se registra y se
		   devuelve sin cambios; el lote continúa
		4. Log cantidad de reglas actualizadas

	Returns:
		(reglas, cantidad de reglas modificadas)
	"""
	refreshed = []
	changed_count = 0

	for rule in rules:
		if not rule.is_active:
			refreshed.append(rule)
			continue

		try:
			last_occurrence = last_execution(rule, now, tz=tz, config=config)
			next_occurrence = next_execution(rule, now, tz=tz, config=config)
		except SchedulingError as e:
			logger.error("Error refreshing executions for rule %s: %s", rule.id, e)
			refreshed.append(rule)
			continue

		status = rule.status
		local_now = align(now, resolve_zone(rule, now, tz))
		if next_occurrence is None and rule.end_date is not None and local_now.date() > rule.end_date:
			status = RuleStatus.COMPLETED

		updated = rule.with_executions(
			last_occurrence.start if last_occurrence else None,
			next_occurrence.start if next_occurrence else None,
			status=status
		)

		if updated != rule:
			changed_count += 1
			if status != rule.status:
				logger.info("Recurrence rule %s completed (end date %s)", rule.id, rule.end_date)

		refreshed.append(updated)

	if changed_count > 0:
		logger.info("refresh_recurrence_executions: %d rule(s) updated", changed_count)

	return refreshed, changed_count
