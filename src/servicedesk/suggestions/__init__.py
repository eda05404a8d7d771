"""
Suggestions Bounded Context
===========================

Improvement suggestions from users, carried through analysis, development,
testing and deployment by the development team.
"""
