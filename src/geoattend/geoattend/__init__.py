"""Geofenced attendance core.

Organized by feature modules (geo, attendance, events, ratelimit) with thin
Flask controllers on top of service/repository layers.
"""
