"""Core Application Layer: the memoization protocol and command orchestration.

Connects the domain layer with the infrastructure layer through interfaces.
"""
