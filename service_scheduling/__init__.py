"""
Service Scheduling

Recurring-appointment expansion, conflict detection and calendar-grid
projection for service companies (professionals and teams).
"""

import logging

__version__ = "0.1.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())
