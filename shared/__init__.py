"""
Shared Kernel

Base classes and utilities shared by the parking domain apps:
entities, value objects, domain events, the unit of work and the message bus.
"""
