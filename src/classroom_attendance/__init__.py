"""Classroom Attendance package.

Organized by feature modules (schedules, roster, events, attendance, ...)
with a thin Flask controller layer over service/repository layers.
The attendance module fuses card taps and seat-weight readings into one
attendance status per student per class session.
"""
