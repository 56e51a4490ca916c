"""Payroll cycle calculation and finalization engine."""

__version__ = "0.1.0"
