"""
Scheduling Services Module

This module provides core business logic for appointment scheduling:
- Date/time arithmetic (timemath.py)
- Recurrence expansion (recurrence.py)
- Conflict detection (overlap.py)
- Working hours and free intervals (availability.py)
- Slot generation for UI (slots.py)
- Calendar grid projection (calendar_grid.py)
- Batch tasks over recurrence rules (tasks.py)
"""
