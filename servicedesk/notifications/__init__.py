"""
Notifications Module
====================

Escalation emails: recipient resolution, delivery through the email
provider and the audit record of each send.
"""
