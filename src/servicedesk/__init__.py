"""
ServiceDesk
===========

Ticket tracking and workflow service with SLA monitoring.

Bounded contexts:
- directory: users, roles, projects, ticket types and access control
- tickets: ticket lifecycle, posts, attachments, feedback
- sla: SLA policies, breach detection and periodic scanning
- notifications: subscriptions and notification fanout
- history: change history and event log
- analytics: aggregate statistics
- suggestions: improvement suggestions workflow
"""

__version__ = "1.0.0"
