"""
Infrastructure Package
======================

Process-wide technical resources shared by the bounded contexts.
"""
