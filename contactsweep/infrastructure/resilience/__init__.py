"""API Resilience Implementations.

Contains the pausable, cancellable scheduler that paces bulk removals and
backs off when the server signals throttling.
Bounded Context: API Resilience
"""
