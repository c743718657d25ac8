"""Time tracking and attendance accounting.

The package is organized by feature modules (timers, time_entries, attendance,
stats, targets) with a thin Flask controller layer over service/repository
layers.
"""

__version__ = "0.1.0"
