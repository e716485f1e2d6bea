"""
Persistence layer: engine/session setup, the declarative base, and the
generic repository built on them.
"""
