"""
Escalation Module
=================

Manual escalation of a ticket: reroute queue and owner, raise priority,
leave a note, and notify the new owners.
"""
