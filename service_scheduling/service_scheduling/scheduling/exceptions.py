"""
Scheduling Exceptions

Error hierarchy shared by the scheduling core and the API layer.
"""


class SchedulingError(Exception):
	"""Excepción base para errores de agendamiento."""
	pass


class ValidationError(SchedulingError, ValueError):
	"""Entrada inválida (formato de fecha, id, código de enum, etc.)."""
	pass


class InvalidRuleError(ValidationError):
	"""Configuración de recurrencia inválida (day, duration, fechas)."""
	pass


class MalformedIntervalError(ValidationError):
	"""Un intervalo cuyo start/end no se puede ordenar (end <= start o ilegible)."""
	pass


class SettingsError(ValidationError):
	"""Scheduling Settings inconsistentes (horario, buffer, días laborales)."""
	pass


class RangeTooLargeError(SchedulingError):
	"""La ventana consultada produciría más ocurrencias que el límite de seguridad."""

	def __init__(self, message: str, limit: int = 0):
		super().__init__(message)
		self.limit = limit
