"""
Service Scheduling API

Entry points for the UI/API layer.

Structure:
    api/
    ├── __init__.py              # This file
    ├── shared/                  # Shared utilities
    │   ├── __init__.py          # Re-exports validators and serializers
    │   ├── serializers.py       # Wire codec (camelCase, codes, ticks)
    │   └── validators.py        # Input validators
    └── scheduling_api.py        # Calendar views, validation, slots

Usage:
    from service_scheduling.api.scheduling_api import get_calendar_view
    grid = get_calendar_view("week", "2026-04-15", rules, appointments, tz="America/Bogota")
"""

from . import scheduling_api
from . import shared

__all__ = [
    "scheduling_api",
    "shared",
]
