"""
CLI runner for the payroll engine.
"""

from .main import main

__all__ = ["main"]
