"""
SLA Bounded Context
===================

Per ticket type and priority time budgets, breach detection with an
idempotent breach ledger, and the periodic open-ticket scan.
"""
