from __future__ import annotations

from typing import Optional, Protocol

from .model import Course, CreditPackage, Student


class StudentRepository(Protocol):
    """Student directory used to denormalize display fields at write time."""

    def get_by_id(self, student_id: int) -> Optional[Student]:
        raise NotImplementedError


class CourseRepository(Protocol):
    def get_by_id(self, course_id: int) -> Optional[Course]:
        raise NotImplementedError


class PackageRepository(Protocol):
    def get_by_id(self, package_id: int) -> Optional[CreditPackage]:
        raise NotImplementedError
