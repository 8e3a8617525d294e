"""Admission control adapters.

This package provides a small abstraction layer so the service can start with
an in-memory controller and later migrate to Redis or another shared store
without changing the API layer.
"""

from app.adapters.rate_limit.base import AbstractAdmissionController, AdmissionDecision
from app.adapters.rate_limit.in_memory import InMemoryAdmissionController

__all__ = [
    "AbstractAdmissionController",
    "AdmissionDecision",
    "InMemoryAdmissionController",
]
