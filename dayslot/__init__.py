"""
dayslot - single-slot-per-day appointment booking.
"""

__version__ = "0.1.0"
