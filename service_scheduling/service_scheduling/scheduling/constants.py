"""
Scheduling Constants

Enumerations shared by records, the scheduling core and the wire codec.
Enum values are the integer codes used by the REST API.
"""

from enum import IntEnum


class Frequency(IntEnum):
	DAILY = 0
	WEEKLY = 1
	BIWEEKLY = 2
	MONTHLY = 3
	QUARTERLY = 4
	YEARLY = 5


class RuleStatus(IntEnum):
	ACTIVE = 0
	PAUSED = 1
	COMPLETED = 2


class ServiceType(IntEnum):
	REGULAR = 1
	DEEP = 2
	SPECIALIZED = 3


class AppointmentStatus(IntEnum):
	SCHEDULED = 0
	IN_PROGRESS = 1
	COMPLETED = 2
	CANCELLED = 3


class ConflictType(IntEnum):
	OVERLAP = 0
	BUFFER_VIOLATION = 1
	OUTSIDE_WORKING_HOURS = 2
	HOLIDAY = 3


# Frecuencias cuyo `day` es día de semana (0=Sunday..6=Saturday)
WEEKDAY_FREQUENCIES = (Frequency.WEEKLY, Frequency.BIWEEKLY)

# Frecuencias cuyo `day` es día del mes (1..31)
MONTHDAY_FREQUENCIES = (Frequency.MONTHLY, Frequency.QUARTERLY, Frequency.YEARLY)

# Período en días de las frecuencias de paso fijo
FIXED_PERIOD_DAYS = {
	Frequency.DAILY: 1,
	Frequency.WEEKLY: 7,
	Frequency.BIWEEKLY: 14,
}

# Período en meses de las frecuencias mensuales
MONTH_PERIODS = {
	Frequency.MONTHLY: 1,
	Frequency.QUARTERLY: 3,
	Frequency.YEARLY: 12,
}

WEEKDAY_NAMES = (
	"sunday",
	"monday",
	"tuesday",
	"wednesday",
	"thursday",
	"friday",
	"saturday",
)
