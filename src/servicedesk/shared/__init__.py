"""
Shared Kernel Module
====================

This module contains shared infrastructure used across all bounded contexts
(directory, tickets, sla, notifications, history, analytics, suggestions).

Architecture Pattern: Modular Monolith
- Each module is a bounded context
- Shared kernel contains only generic infrastructure

DO NOT add ticket or SLA business logic to the shared kernel.
"""
