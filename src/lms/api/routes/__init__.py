"""
API Routes package
"""
from . import admin, assignments, auth, courses, econtent, events, lectures, semesters, students, teachers

__all__ = [
    'admin', 'assignments', 'auth', 'courses', 'econtent', 'events', 'lectures', 'semesters', 'students',
    'teachers',
]
