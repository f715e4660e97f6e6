from __future__ import annotations

import mysql.connector

from ..adjustments.mysql_adjustment_repository import MySQLAdjustmentRepository
from ..attendance.mysql_attendance_repository import MySQLAttendanceRepository
from ..catalog.mysql_course_repository import MySQLCourseRepository, MySQLPackageRepository
from ..catalog.mysql_student_repository import MySQLStudentRepository
from ..core.exceptions import TransactionConflict
from ..credits.mysql_credit_repository import MySQLCreditRepository
from .connection import DatabaseConnection
from .mysql_base import MYSQL_CONFLICT_ERRNOS


class MySQLUnitOfWork:
    """One connection, one InnoDB transaction, every repository on the same cursor.

    Leaving the block without ``commit()`` (or with an exception) rolls back.
    Deadlocks and lock-wait timeouts are re-raised as ``TransactionConflict``
    so the caller's retry loop handles them like a failed version check.
    """

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory
        self._conn = None
        self._cur = None
        self._committed = False

    def __enter__(self) -> "MySQLUnitOfWork":
        self._conn = self._conn_factory.connect()
        self._conn.start_transaction(isolation_level="REPEATABLE READ")
        self._cur = self._conn.cursor(dictionary=True, buffered=True)
        self._committed = False

        self.students = MySQLStudentRepository(self._cur)
        self.courses = MySQLCourseRepository(self._cur)
        self.packages = MySQLPackageRepository(self._cur)
        self.credits = MySQLCreditRepository(self._cur)
        self.attendance = MySQLAttendanceRepository(self._cur)
        self.adjustments = MySQLAdjustmentRepository(self._cur)
        return self

    def commit(self) -> None:
        try:
            self._conn.commit()
        except mysql.connector.Error as exc:
            if exc.errno in MYSQL_CONFLICT_ERRNOS:
                raise TransactionConflict(str(exc)) from exc
            raise
        self._committed = True

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            if not self._committed:
                self._conn.rollback()
        finally:
            try:
                self._cur.close()
            finally:
                self._conn.close()

        if isinstance(exc, mysql.connector.Error) and exc.errno in MYSQL_CONFLICT_ERRNOS:
            raise TransactionConflict(str(exc)) from exc
