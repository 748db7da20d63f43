"""
CSV export of unit members and certificates.

Pure formatting: records arrive already selected and ordered.
"""
import csv
import io
from datetime import date, datetime
from typing import Any, Iterable, List, Mapping, Optional, Sequence
from uuid import UUID

from app.infrastructure.database.models import Certificate, User

MEMBER_COLUMNS = [
    "Name",
    "Email",
    "Job Title",
    "Unit",
    "Role",
    "Certificates Count",
    "Contact Enabled",
    "Join Date",
]

CERTIFICATE_COLUMNS = [
    "Title",
    "Category",
    "Subcategory",
    "Issuer",
    "Completion Date",
    "Author Name",
    "Author Email",
    "Likes",
    "Views",
    "Created Date",
]


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if hasattr(value, "value"):
        return str(value.value)
    return str(value)


class CsvExporter:
    """Writes header plus rows to UTF-8 encoded CSV bytes."""

    def __init__(self, dialect: str = "excel"):
        self.dialect = dialect

    def write(self, header: Sequence[str], rows: Iterable[Sequence[Any]]) -> bytes:
        buffer = io.StringIO()
        writer = csv.writer(buffer, dialect=self.dialect)
        writer.writerow(header)
        for row in rows:
            writer.writerow([_cell(value) for value in row])
        return buffer.getvalue().encode("utf-8")

    def members(
        self,
        users: Iterable[User],
        certificate_counts: Optional[Mapping[UUID, int]] = None,
    ) -> bytes:
        counts = certificate_counts or {}
        rows: List[Sequence[Any]] = [
            (
                user.name,
                user.email,
                user.job_title,
                user.unit,
                user.role,
                counts.get(user.id, 0),
                user.contacts_enabled,
                user.created_at,
            )
            for user in users
        ]
        return self.write(MEMBER_COLUMNS, rows)

    def certificates(self, certificates: Iterable[Certificate]) -> bytes:
        rows: List[Sequence[Any]] = [
            (
                cert.title,
                cert.category,
                cert.subcategory,
                cert.issuer,
                cert.completion_date,
                cert.owner.name if cert.owner else "Unknown",
                cert.owner.email if cert.owner else "Unknown",
                cert.like_count,
                cert.view_count,
                cert.created_at,
            )
            for cert in certificates
        ]
        return self.write(CERTIFICATE_COLUMNS, rows)
