"""Verify that deployed contracts match the audited source tree."""

__version__ = "1.3.0"
