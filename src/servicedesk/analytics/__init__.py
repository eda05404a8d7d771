"""
Analytics Bounded Context
=========================

Read-only aggregates over tickets, feedback and the SLA breach ledger.
"""
