"""Tests for the bulk-import sheet parser."""
import io

import pandas as pd
import pytest

from lms.errors import BadRequestError
from lms.utils.spreadsheet import parse_user_rows


def test_csv_rows_with_header_aliases():
    csv_text = (
        "Name,Email,Password,Role,Teacher Email\n"
        "Prof X,PROF@campus.test,secret1,Teacher,\n"
        "Jean,jean@campus.test,secret1,student,prof@campus.test\n"
    )

    rows, skipped = parse_user_rows(csv_text.encode(), "users.csv")

    assert skipped == []
    assert [(r.email, r.role) for r in rows] == [("prof@campus.test", "teacher"), ("jean@campus.test", "student")]
    assert rows[1].teacher_email == "prof@campus.test"


def test_invalid_rows_are_reported_and_skipped():
    csv_text = (
        "name,email,password,role,teacherEmail\n"
        "Ok,ok@campus.test,secret1,teacher,\n"
        "NoTeacher,nt@campus.test,secret1,student,\n"
        "Short,short@campus.test,123,teacher,\n"
        "Weird,weird@campus.test,secret1,janitor,\n"
    )

    rows, skipped = parse_user_rows(csv_text.encode(), "users.csv")

    assert [r.email for r in rows] == ["ok@campus.test"]
    assert len(skipped) == 3
    assert skipped[0].startswith("Row 3")


def test_excel_workbook():
    buffer = io.BytesIO()
    pd.DataFrame([
        {"name": "Prof", "email": "p@campus.test", "password": "secret1", "role": "teacher", "teacherEmail": None},
    ]).to_excel(buffer, index=False)

    rows, _ = parse_user_rows(buffer.getvalue(), "users.xlsx")

    assert rows[0].name == "Prof"


def test_unsupported_extension():
    with pytest.raises(BadRequestError):
        parse_user_rows(b"whatever", "users.txt", "text/plain")


def test_sheet_without_valid_rows():
    with pytest.raises(BadRequestError):
        parse_user_rows(b"name,email,password,role\nA,a@campus.test,1,teacher\n", "users.csv")


def test_empty_sheet():
    with pytest.raises(BadRequestError):
        parse_user_rows(b"name,email,password,role\n", "users.csv")
