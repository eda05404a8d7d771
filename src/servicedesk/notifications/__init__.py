"""
Notifications Bounded Context
=============================

Subscriptions, in-app notifications and the fanout that turns one
lifecycle event into per-recipient notifications.
"""
