"""
Core enums for the GPAE booking API.

This module contains enumeration types used throughout the application
for type safety and consistency.
"""

from enum import Enum


class RoleName(str, Enum):
    """Roles a person can hold in the directory."""

    ADMIN = "admin"
    INSTRUCTOR = "instructor"
    STUDENT = "student"


class StudentBookingScope(str, Enum):
    """
    Scope of the student double-booking check.

    ANY: a student cannot hold two reservations in the same hour, whoever the instructor.
    INSTRUCTOR: only a second reservation with the same instructor is refused.
    """

    ANY = "any"
    INSTRUCTOR = "instructor"
