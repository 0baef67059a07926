"""
Calendar sessions → Client matching → Human confirmation → Payroll report

A deterministic, testable engine that turns an employee's calendar sessions
into per-client payroll entries, using confidence-graded name matching and a
durable ledger of human decisions for ambiguous matches.
"""

__version__ = "0.1.0"
