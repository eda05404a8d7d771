"""
Tickets Bounded Context
=======================

Ticket lifecycle, comments (posts), attachments and satisfaction feedback.
"""
