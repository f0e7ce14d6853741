"""Sunday school attendance package.

This package is organized by feature modules (students, lessons, schedules,
attendance, alerts, ...) with a thin Flask controller layer on top of
service/repository layers.
"""
