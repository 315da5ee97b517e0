"""Loan application intake and AI-assisted underwriting."""

__version__ = "1.0.0"
