"""School Admin package.

Feature modules (users, courses, schedules, attendance, grades, break_glass,
audit) each keep a thin Flask controller on top of service and repository
layers.
"""
