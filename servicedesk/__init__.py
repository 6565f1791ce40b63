"""
Service Desk SLA Engine
=======================

SLA tracking, breach detection and manual escalation for helpdesk tickets.
"""

__version__ = "1.0.0"
