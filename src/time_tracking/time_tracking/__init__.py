"""Time Tracking package.

This package is organized by feature modules (location, sessions, attendance,
reports, ...) with a thin Flask controller layer on top of service/repository
layers.
"""
