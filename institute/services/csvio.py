"""
CSV reading and writing for bulk import and report export.

Files are small (hundreds to low thousands of rows) so everything is read
into memory. Quoting follows the standard ``csv`` dialect; a field holding
the delimiter must be double-quoted. Quoted values may not span lines.
"""

import csv
import io
from dataclasses import dataclass
from typing import Iterable, Iterator, Sequence

from institute.core.errors import ImportFormatError


TEMPLATES = {
    "students": (
        "full_name,email,phone,student_id,date_of_birth,gender,address,status\n"
        "John Doe,john@example.com,1234567890,STU001,2000-01-15,Male,123 Main St,active\n"
    ),
    "faculty": (
        "full_name,email,phone,faculty_id,department,qualification,specialization,joining_date,status\n"
        "Dr. Jane Smith,jane@example.com,1234567890,FAC001,Computer Science,Ph.D.,AI,2020-01-01,active\n"
    ),
    "courses": (
        "course_code,course_name,description,credits,department,semester,status\n"
        "CS101,Intro to Programming,Learn basics,3,Computer Science,1,active\n"
    ),
    "enrollments": (
        "student_id,course_code,status,enrollment_date\n"
        "STU001,CS101,enrolled,2025-01-10\n"
    ),
    "attendance": (
        "student_id,course_code,date,status,notes\n"
        "STU001,CS101,2025-01-15,present,\n"
    ),
    "grades": (
        "student_id,course_code,assessment_name,assessment_type,obtained_marks,max_marks,assessment_date\n"
        "STU001,CS101,Midterm,exam,42,50,2025-03-01\n"
    ),
}


@dataclass(frozen=True)
class ParsedCSV:
    headers: tuple[str, ...]
    records: tuple[dict[str, str], ...]

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[dict[str, str]]:
        return iter(self.records)


def parse_csv(text: str, delimiter: str = ",") -> ParsedCSV:
    """
    Split ``text`` into a header and one header→value mapping per data line.

    Blank lines are ignored. Values are trimmed; a short row gets ``""`` for
    its missing trailing columns and surplus values are dropped.
    Raises ImportFormatError when there is no header plus at least one row.
    """
    lines = [line for line in text.lstrip("\ufeff").splitlines() if line.strip()]
    if len(lines) < 2:
        raise ImportFormatError("No valid data found in CSV")

    reader = csv.reader(lines, delimiter=delimiter)
    headers = tuple(h.strip() for h in next(reader))

    records = []
    for values in reader:
        values = [v.strip() for v in values]
        records.append({
            header: values[i] if i < len(values) else ""
            for i, header in enumerate(headers)
        })

    return ParsedCSV(headers=headers, records=tuple(records))


def require_columns(parsed: ParsedCSV, columns: Iterable[str]):
    missing = [c for c in columns if c not in parsed.headers]
    if missing:
        raise ImportFormatError(f"CSV is missing required columns: {', '.join(missing)}")


def write_csv(headers: Sequence[str], rows: Iterable[dict], delimiter: str = ",") -> str:
    """Header line plus one line per row, every value double-quoted."""
    output = io.StringIO()
    writer = csv.writer(output, delimiter=delimiter, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(headers)
    for row in rows:
        writer.writerow(["" if row.get(h) is None else row.get(h) for h in headers])
    return output.getvalue()


def grade_sheet_template(roster: Iterable[dict], delimiter: str = ",") -> str:
    """student_id,marks sheet with one blank-marks line per enrolled student."""
    return write_csv(
        ["student_id", "marks"],
        [{"student_id": s.get("student_id"), "marks": ""} for s in roster],
        delimiter,
    )
