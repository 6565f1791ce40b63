"""
Audit Module
============

Append-only ticket event streams (SLA and audit) with typed payloads.
"""
