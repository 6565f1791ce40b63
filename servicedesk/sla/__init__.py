"""
SLA Module
==========

Bounded context for SLA tracking: policy matching, first-response and
resolution deadlines, and breach detection.

Layers:
- domain: entities and stateless calculators
- application: SlaClockService, repository interfaces, DTOs
- infrastructure: SQLAlchemy models and repositories
- interfaces: FastAPI routes
"""
