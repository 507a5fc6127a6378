"""Vendor address synchronization and retired-address notification service."""

__version__ = "0.1.0"
