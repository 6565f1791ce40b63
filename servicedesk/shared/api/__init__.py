"""
Shared API
==========

Middleware, exception handlers and request dependencies shared by all
routers.
"""
