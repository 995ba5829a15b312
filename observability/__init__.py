"""
Structured conversation events and their in-memory store.
"""
