"""
Directory Module
================

Bounded Context for identities, roles, projects and access control.

Responsibilities:
- Authenticate users and issue bearer tokens
- Manage users, roles, projects and per-project ticket types
- Answer access questions (permissions, project visibility, project manager)
"""
