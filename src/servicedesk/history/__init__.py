"""
History Bounded Context
=======================

Per-ticket change history and the system-wide event log.
"""
