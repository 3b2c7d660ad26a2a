import pytest

DAY = "2026-03-02"


@pytest.fixture
def course(client, login):
    """An active course owned by the demo faculty member with two enrolled students."""

    login("admin")
    resp = client.post(
        "/api/courses",
        json={
            "code": "IT210",
            "title": "Databases",
            "section": "B",
            "semester": "2nd Semester",
            "academicYear": "2025-2026",
            "facultyId": 3,
        },
    )
    assert resp.status_code == 201
    added = client.post(
        "/api/courses/it210-b/students",
        json={
            "students": [
                {"studentNumber": "2025-0001", "lastName": "Cruz", "firstName": "Ana"},
                {"studentNumber": "2025-0002", "lastName": "Reyes", "firstName": "Ben", "middleInitial": "D"},
            ]
        },
    )
    assert added.get_json() == {"success": True, "added": 2}
    students = client.get("/api/courses/it210-b/students").get_json()
    return {"slug": "it210-b", "student_ids": sorted(s["id"] for s in students)}


def test_attendance_batch_then_stats(client, course):
    first, second = course["student_ids"]
    resp = client.post(
        f"/api/courses/{course['slug']}/attendance/batch",
        json={
            "date": DAY,
            "attendance": [
                {"studentId": first, "status": "present"},
                {"studentId": second, "status": "EXCUSED", "reason": "Medical"},
            ],
        },
    )
    assert resp.get_json()["records"] == 2

    page = client.get(f"/api/courses/{course['slug']}/attendance?date={DAY}&limit=1").get_json()
    assert page["pagination"] == {"total": 2, "page": 1, "limit": 1, "totalPages": 2}

    stats = client.get(f"/api/courses/{course['slug']}/attendance/stats").get_json()
    assert stats["totalStudents"] == 2
    assert stats["totalPresent"] == 1
    assert stats["totalExcused"] == 1
    assert stats["attendanceRate"] == 50
    assert stats["lastAttendanceDate"] == DAY


def test_attendance_batch_is_all_or_nothing(client, course):
    first, _ = course["student_ids"]
    resp = client.post(
        f"/api/courses/{course['slug']}/attendance/batch",
        json={"date": DAY, "attendance": [{"studentId": first, "status": "PRESENT"}, {"studentId": 999, "status": "LATE"}]},
    )
    assert resp.status_code == 400

    page = client.get(f"/api/courses/{course['slug']}/attendance?date={DAY}").get_json()
    assert page["attendance"] == []


def test_clear_attendance_for_a_day(client, course):
    first, second = course["student_ids"]
    client.post(
        f"/api/courses/{course['slug']}/attendance/batch",
        json={"date": DAY, "updates": [{"studentId": first, "status": "LATE"}, {"studentId": second, "status": "ABSENT"}]},
    )
    resp = client.delete(f"/api/courses/{course['slug']}/attendance/clear?date={DAY}")
    assert resp.get_json()["deletedCount"] == 2


def test_attendance_requires_a_valid_date(client, course):
    assert client.get(f"/api/courses/{course['slug']}/attendance").status_code == 400
    assert client.get(f"/api/courses/{course['slug']}/attendance?date=03/02/2026").status_code == 400


def test_faculty_marks_attendance_only_for_own_courses(client, course, login):
    first, _ = course["student_ids"]
    client.post(
        "/api/courses",
        json={"code": "IT999", "title": "Other", "section": "Z", "semester": "2nd Semester", "academicYear": "2025-2026"},
    )

    login("faculty")
    own = client.post(
        f"/api/courses/{course['slug']}/attendance/batch",
        json={"date": DAY, "attendance": [{"studentId": first, "status": "PRESENT"}]},
    )
    assert own.status_code == 200

    other = client.post(
        "/api/courses/it999-z/attendance/batch",
        json={"date": DAY, "attendance": [{"studentId": first, "status": "PRESENT"}]},
    )
    assert other.status_code == 403


def test_grades_replace_per_criteria_and_date(client, course):
    first, second = course["student_ids"]
    url = f"/api/courses/{course['slug']}/grades"

    saved = client.post(
        url,
        json={
            "date": DAY,
            "criteria": "Quiz 1",
            "grades": [{"studentId": first, "scores": [8, 9]}, {"studentId": second, "scores": [5], "total": 7}],
        },
    ).get_json()
    assert sorted(g["total"] for g in saved) == [7, 17]

    client.post(url, json={"date": DAY, "criteria": "Quiz 1", "grades": [{"studentId": first, "scores": [10]}]})
    listed = client.get(url, query_string={"date": DAY, "criteria": "Quiz 1"}).get_json()
    assert [(g["studentId"], g["total"]) for g in listed] == [(first, 10)]

    deleted = client.delete(url, query_string={"date": DAY, "criteria": "Quiz 1"}).get_json()
    assert deleted["deletedCount"] == 1


def test_grades_reject_negative_scores(client, course):
    first, _ = course["student_ids"]
    resp = client.post(
        f"/api/courses/{course['slug']}/grades",
        json={"date": DAY, "criteria": "Quiz 2", "grades": [{"studentId": first, "scores": [-1]}]},
    )
    assert resp.status_code == 400


def test_head_sees_attendance_logs_but_not_security(client, course, login):
    first, _ = course["student_ids"]
    client.post(
        f"/api/courses/{course['slug']}/attendance/batch",
        json={"date": DAY, "attendance": [{"studentId": first, "status": "PRESENT"}]},
    )
    client.post("/api/break-glass/activate", json={"userId": 3, "reason": "Registrar outage"})

    login("head")
    modules = {e["module"] for e in client.get("/api/logs").get_json()}
    assert "Attendance" in modules
    assert "Security" not in modules
