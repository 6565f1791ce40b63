"""
Tickets Module
==============

Adapters for the helpdesk-owned records the SLA engine depends on:
tickets, user profiles, operator groups and internal comments, plus the
rules deciding who may work a ticket.
"""
