"""
Driver Drowsiness & Faint Guard

This package contains all modules for the detection engine:
- EAR calculation
- Temporal debouncing of eye closure and face absence
- Alert state machine (drowsiness / faint)
- Remote alert dispatch with cooldown
- Siren
- Vehicle response simulation
"""

__version__ = "1.0.0"
