"""Tests for assignment submission and grading."""
from datetime import datetime, timedelta, timezone

import pytest

from lms.errors import BadRequestError, ForbiddenError, NotFoundError, StorageError
from lms.models.database_models import Assignment, Submission, SubmissionStatus
from lms.services.submissions import UploadedFile, grade, submit

DUE = datetime(2026, 4, 15, 23, 59, tzinfo=timezone.utc)
PDF = "application/pdf"


def pdf(name="answer.pdf", size=16):
    return UploadedFile(filename=name, content_type=PDF, data=b"%" * size)


@pytest.fixture
def setup(db, make):
    teacher = make.teacher()
    student = make.student(teacher)
    course = make.course(teacher)
    assignment = Assignment(
        title="Homework 1", description="Sorting", course_id=course.id, due_date=DUE, total_points=50,
    )
    db.add(assignment)
    db.commit()
    return teacher, student, course, assignment


class TestSubmit:
    def test_on_time_submission(self, db, storage, setup):
        _, student, _, assignment = setup

        submission, replaced = submit(db, storage, assignment.id, student, pdf(), now=DUE - timedelta(hours=1))

        assert submission.is_late is False
        assert submission.status == SubmissionStatus.SUBMITTED
        assert replaced is None
        assert submission.submission_key in storage.objects

    def test_one_minute_late(self, db, storage, setup):
        _, student, _, assignment = setup

        submission, _ = submit(db, storage, assignment.id, student, pdf(), now=DUE + timedelta(minutes=1))

        db.expire_all()
        assert db.get(Submission, submission.id).is_late is True

    def test_exactly_at_due_date_is_on_time(self, db, storage, setup):
        _, student, _, assignment = setup
        submission, _ = submit(db, storage, assignment.id, student, pdf(), now=DUE)
        assert submission.is_late is False

    def test_resubmission_overwrites_in_place(self, db, storage, setup):
        _, student, _, assignment = setup
        first, _ = submit(db, storage, assignment.id, student, pdf("v1.pdf"), now=DUE - timedelta(days=1))
        first_key = first.submission_key

        second, replaced = submit(db, storage, assignment.id, student, pdf("v2.pdf"), now=DUE + timedelta(hours=2))

        assert second.id == first.id
        assert second.is_late is True
        assert replaced == first_key
        assert db.query(Submission).filter_by(assignment_id=assignment.id, student_id=student.id).count() == 1

    def test_resubmission_keeps_grade_and_resets_status(self, db, storage, setup):
        _, student, _, assignment = setup
        first, _ = submit(db, storage, assignment.id, student, pdf(), now=DUE - timedelta(days=2))
        grade(db, assignment, first.id, 40, "Good")

        again, _ = submit(db, storage, assignment.id, student, pdf(), now=DUE - timedelta(days=1))

        assert again.status == SubmissionStatus.SUBMITTED
        assert again.grade == 40
        assert again.feedback == "Good"
        assert again.is_late is False

    def test_not_enrolled_is_forbidden(self, db, storage, make, setup):
        _, _, _, assignment = setup
        outsider = make.student(make.teacher())
        with pytest.raises(ForbiddenError):
            submit(db, storage, assignment.id, outsider, pdf(), now=DUE)

    def test_unknown_assignment(self, db, storage, setup):
        _, student, _, _ = setup
        with pytest.raises(NotFoundError):
            submit(db, storage, 9999, student, pdf(), now=DUE)

    def test_inactive_assignment(self, db, storage, setup):
        _, student, _, assignment = setup
        assignment.is_active = False
        db.commit()
        with pytest.raises(BadRequestError):
            submit(db, storage, assignment.id, student, pdf(), now=DUE)

    @pytest.mark.parametrize("upload", [
        None,
        UploadedFile(filename="run.exe", content_type="application/x-msdownload", data=b"MZ"),
        UploadedFile(filename="big.pdf", content_type=PDF, data=b"0" * 2048),
    ])
    def test_invalid_files_rejected_before_upload(self, db, storage, setup, upload):
        _, student, _, assignment = setup
        with pytest.raises(BadRequestError):
            submit(db, storage, assignment.id, student, upload, now=DUE, max_bytes=1024)
        assert storage.objects == {}
        assert db.query(Submission).count() == 0

    def test_upload_failure_writes_no_row(self, db, storage, setup):
        _, student, _, assignment = setup
        storage.fail_uploads_after = 0
        with pytest.raises(StorageError):
            submit(db, storage, assignment.id, student, pdf(), now=DUE)
        assert db.query(Submission).count() == 0


class TestGrade:
    def _submission(self, db, storage, setup):
        _, student, _, assignment = setup
        submission, _ = submit(db, storage, assignment.id, student, pdf(), now=DUE)
        return assignment, submission

    @pytest.mark.parametrize("value", [-1, -0.5, 50.5, 51])
    def test_out_of_range(self, db, storage, setup, value):
        assignment, submission = self._submission(db, storage, setup)
        with pytest.raises(BadRequestError):
            grade(db, assignment, submission.id, value)
        assert db.get(Submission, submission.id).status == SubmissionStatus.SUBMITTED

    @pytest.mark.parametrize("value", [0, 25, 50])
    def test_in_range_sets_graded(self, db, storage, setup, value):
        assignment, submission = self._submission(db, storage, setup)
        graded = grade(db, assignment, submission.id, value, "ok")
        assert graded.status == SubmissionStatus.GRADED
        assert graded.grade == value

    @pytest.mark.parametrize("value", [float("nan"), float("inf")])
    def test_non_finite_grade_rejected(self, db, storage, setup, value):
        assignment, submission = self._submission(db, storage, setup)
        with pytest.raises(BadRequestError):
            grade(db, assignment, submission.id, value)
        assert db.get(Submission, submission.id).grade is None

    def test_submission_of_other_assignment(self, db, storage, setup):
        _, _, course, assignment = setup
        _, submission = self._submission(db, storage, setup)
        other = Assignment(title="HW2", description="x", course_id=course.id, due_date=DUE, total_points=10)
        db.add(other)
        db.commit()
        with pytest.raises(NotFoundError):
            grade(db, other, submission.id, 5)


class TestAssignmentEndpoints:
    def test_submit_late_over_http(self, client, db, make, setup):
        _, student, course, _ = setup
        past_due = Assignment(
            title="Past", description="x", course_id=course.id,
            due_date=datetime.now(timezone.utc) - timedelta(minutes=1), total_points=10,
        )
        db.add(past_due)
        db.commit()

        response = client.post(
            f"/api/assignment/assignments/{past_due.id}/submit",
            files={"file": ("answer.pdf", b"%PDF-1.4", PDF)},
            headers=make.headers(student.user),
        )

        assert response.status_code == 200
        assert response.json()["is_late"] is True

    def test_resubmit_deletes_previous_blob(self, client, make, storage, setup):
        _, student, _, assignment = setup
        headers = make.headers(student.user)
        client.post(
            f"/api/assignment/assignments/{assignment.id}/submit",
            files={"file": ("a.pdf", b"1", PDF)}, headers=headers,
        )
        first_keys = set(storage.objects)

        client.post(
            f"/api/assignment/assignments/{assignment.id}/submit",
            files={"file": ("b.pdf", b"2", PDF)}, headers=headers,
        )

        assert set(storage.deleted) == first_keys
        assert len(storage.objects) == 1

    def test_missing_file(self, client, make, setup):
        _, student, _, assignment = setup
        response = client.post(
            f"/api/assignment/assignments/{assignment.id}/submit", headers=make.headers(student.user),
        )
        assert response.status_code == 400

    def test_grade_endpoint_validates_range(self, client, db, make, storage, setup):
        teacher, student, _, assignment = setup
        submission, _ = submit(db, storage, assignment.id, student, pdf(), now=DUE)
        url = f"/api/assignment/assignments/{assignment.id}/submissions/{submission.id}/grade"

        too_high = client.post(url, json={"grade": 51}, headers=make.headers(teacher.user))
        ok = client.post(url, json={"grade": 45, "feedback": "Nice"}, headers=make.headers(teacher.user))

        assert too_high.status_code == 400
        assert ok.status_code == 200
        assert ok.json()["status"] == "graded"

    def test_students_cannot_grade(self, client, db, make, storage, setup):
        _, student, _, assignment = setup
        submission, _ = submit(db, storage, assignment.id, student, pdf(), now=DUE)
        response = client.post(
            f"/api/assignment/assignments/{assignment.id}/submissions/{submission.id}/grade",
            json={"grade": 50},
            headers=make.headers(student.user),
        )
        assert response.status_code == 403

    def test_create_with_attachment_and_list(self, client, make, storage, setup):
        teacher, student, course, _ = setup
        response = client.post(
            f"/api/assignment/courses/{course.id}/assignments",
            data={
                "title": "Project",
                "description": "Build a parser",
                "due_date": "2026-05-01T10:00:00Z",
                "total_points": "100",
            },
            files=[("attachments", ("brief.pdf", b"%PDF", PDF))],
            headers=make.headers(teacher.user),
        )
        assert response.status_code == 201
        assert [a["name"] for a in response.json()["attachments"]] == ["brief.pdf"]

        listing = client.get(f"/api/assignment/courses/{course.id}/assignments", headers=make.headers(student.user))
        titles = [a["title"] for a in listing.json()]
        assert titles == ["Homework 1", "Project"]
        assert all(a["submission"] is None for a in listing.json())

    def test_attachment_type_rejected(self, client, make, storage, setup):
        teacher, _, course, _ = setup
        response = client.post(
            f"/api/assignment/courses/{course.id}/assignments",
            data={"title": "X", "description": "Y", "due_date": "2026-05-01T10:00:00Z", "total_points": "10"},
            files=[("attachments", ("clip.mp4", b"\x00", "video/mp4"))],
            headers=make.headers(teacher.user),
        )
        assert response.status_code == 400
        assert storage.objects == {}

    def test_remove_single_attachment(self, client, make, storage, setup):
        teacher, _, course, _ = setup
        headers = make.headers(teacher.user)
        created = client.post(
            f"/api/assignment/courses/{course.id}/assignments",
            data={"title": "X", "description": "Y", "due_date": "2026-05-01T10:00:00Z", "total_points": "10"},
            files=[
                ("attachments", ("a.pdf", b"a", PDF)),
                ("attachments", ("b.png", b"b", "image/png")),
            ],
            headers=headers,
        ).json()
        first = created["attachments"][0]

        response = client.put(
            f"/api/assignment/assignments/{created['id']}",
            data={"remove_attachments": f"[{first['id']}]"},
            headers=headers,
        )

        assert [a["name"] for a in response.json()["attachments"]] == ["b.png"]
        assert len(storage.deleted) == 1

    def test_replace_attachments_wholesale(self, client, make, storage, setup):
        teacher, _, course, _ = setup
        headers = make.headers(teacher.user)
        created = client.post(
            f"/api/assignment/courses/{course.id}/assignments",
            data={"title": "X", "description": "Y", "due_date": "2026-05-01T10:00:00Z", "total_points": "10"},
            files=[
                ("attachments", ("a.pdf", b"a", PDF)),
                ("attachments", ("b.png", b"b", "image/png")),
            ],
            headers=headers,
        ).json()
        old_keys = set(storage.objects)

        response = client.put(
            f"/api/assignment/assignments/{created['id']}",
            data={"replace_attachments": "true"},
            files=[("attachments", ("c.pdf", b"c", PDF))],
            headers=headers,
        )

        assert response.status_code == 200
        assert [a["name"] for a in response.json()["attachments"]] == ["c.pdf"]
        assert set(storage.deleted) == old_keys
        assert len(storage.objects) == 1

    def test_nan_grade_body_rejected(self, client, db, make, storage, setup):
        teacher, student, _, assignment = setup
        submission, _ = submit(db, storage, assignment.id, student, pdf(), now=DUE)

        response = client.post(
            f"/api/assignment/assignments/{assignment.id}/submissions/{submission.id}/grade",
            content='{"grade": NaN}',
            headers={**make.headers(teacher.user), "Content-Type": "application/json"},
        )

        assert response.status_code == 400
        db.expire_all()
        stored = db.get(Submission, submission.id)
        assert stored.grade is None
        assert stored.status == SubmissionStatus.SUBMITTED

    def test_submit_upload_failure_over_http(self, client, db, make, storage, setup):
        _, student, _, assignment = setup
        storage.fail_uploads_after = 0

        response = client.post(
            f"/api/assignment/assignments/{assignment.id}/submit",
            files={"file": ("answer.pdf", b"%PDF", PDF)},
            headers=make.headers(student.user),
        )

        assert response.status_code == 500
        assert response.json()["success"] is False
        assert db.query(Submission).count() == 0

    def test_create_upload_failure_writes_no_assignment(self, client, db, make, storage, setup):
        teacher, _, course, _ = setup
        storage.fail_uploads_after = 0

        response = client.post(
            f"/api/assignment/courses/{course.id}/assignments",
            data={"title": "X", "description": "Y", "due_date": "2026-05-01T10:00:00Z", "total_points": "10"},
            files=[("attachments", ("a.pdf", b"a", PDF))],
            headers=make.headers(teacher.user),
        )

        assert response.status_code == 500
        assert db.query(Assignment).count() == 1

    def test_failed_second_attachment_removes_first_blob(self, client, db, make, storage, setup):
        teacher, _, course, _ = setup
        storage.fail_uploads_after = 1

        response = client.post(
            f"/api/assignment/courses/{course.id}/assignments",
            data={"title": "X", "description": "Y", "due_date": "2026-05-01T10:00:00Z", "total_points": "10"},
            files=[
                ("attachments", ("a.pdf", b"a", PDF)),
                ("attachments", ("b.pdf", b"b", PDF)),
            ],
            headers=make.headers(teacher.user),
        )

        assert response.status_code == 500
        assert storage.objects == {}
        assert len(storage.deleted) == 1
        assert db.query(Assignment).count() == 1
