"""
detailbook - quotes, availability and bookings for a car-detailing studio.
"""

__version__ = "0.1.0"
