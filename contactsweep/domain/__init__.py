"""Domain Layer: models, events, errors and ports.

Contains no I/O. Core services and infrastructure adapters depend on these
definitions, never the other way around.
"""
