"""Bulk transaction import & reconciliation pipeline.

Turns a user supplied CSV / Excel file into validated, categorised
transaction payloads ready for an external import executor.
"""

__version__ = "0.1.0"
