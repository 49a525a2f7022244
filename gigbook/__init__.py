"""Booking and availability orchestration engine for musician gigs."""

__version__ = "0.1.0"
