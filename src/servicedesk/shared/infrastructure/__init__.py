"""
Infrastructure Layer
=====================

Low-level technical concerns:
- Logging setup
- Token issuing and password hashing
"""
