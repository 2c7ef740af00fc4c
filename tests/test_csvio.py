import pytest

from institute.core.errors import ImportFormatError
from institute.services.csvio import TEMPLATES, parse_csv, require_columns, write_csv


def test_returns_one_record_per_data_line():
    parsed = parse_csv("full_name,email,student_id\nA,a@x.com,S1\nB,b@x.com,S2\nC,c@x.com,S3")

    assert parsed.headers == ("full_name", "email", "student_id")
    assert len(parsed) == 3
    for record in parsed:
        assert set(record) == {"full_name", "email", "student_id"}
    assert parsed.records[1] == {"full_name": "B", "email": "b@x.com", "student_id": "S2"}


def test_skips_blank_lines_and_trims_values():
    parsed = parse_csv("\n  name , code \n\n  Alpha ,  A1 \r\n   \nBeta,B2\n")

    assert parsed.headers == ("name", "code")
    assert list(parsed) == [{"name": "Alpha", "code": "A1"}, {"name": "Beta", "code": "B2"}]


def test_short_rows_are_padded_and_long_rows_truncated():
    parsed = parse_csv("a,b,c\n1\n1,2,3,4")

    assert parsed.records[0] == {"a": "1", "b": "", "c": ""}
    assert parsed.records[1] == {"a": "1", "b": "2", "c": "3"}


@pytest.mark.parametrize("text", ["", "   \n\n", "full_name,email,student_id\n", "only,a,header\n\n  \n"])
def test_no_data_rows_is_a_format_error(text):
    with pytest.raises(ImportFormatError, match="No valid data"):
        parse_csv(text)


def test_records_can_be_iterated_more_than_once():
    parsed = parse_csv("a,b\n1,2\n3,4")

    assert list(parsed) == list(parsed)


def test_quoted_values_may_contain_the_delimiter():
    parsed = parse_csv('course_code,course_name\nCS101,"Programming, Part 1"')

    assert parsed.records[0]["course_name"] == "Programming, Part 1"


def test_custom_delimiter():
    parsed = parse_csv("a;b\n1;2", delimiter=";")

    assert parsed.records[0] == {"a": "1", "b": "2"}


def test_byte_order_mark_is_ignored():
    parsed = parse_csv("\ufeffstudent_id,marks\nS1,10")

    assert parsed.headers[0] == "student_id"


def test_require_columns_names_every_missing_column():
    parsed = parse_csv("full_name,phone\nA,123")

    with pytest.raises(ImportFormatError) as exc:
        require_columns(parsed, ["full_name", "email", "student_id"])
    assert "email" in str(exc.value)
    assert "student_id" in str(exc.value)


def test_write_csv_quotes_every_value():
    text = write_csv(["name", "credits"], [{"name": "Intro", "credits": 3}, {"name": None, "credits": 4}])

    assert text == '"name","credits"\n"Intro","3"\n"","4"\n'


def test_templates_parse_with_their_own_parser():
    for entity_type, template in TEMPLATES.items():
        parsed = parse_csv(template)
        assert len(parsed) == 1, entity_type
