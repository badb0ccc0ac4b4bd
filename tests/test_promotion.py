from datetime import date

from feedbacts.models.alumni import Alumni
from feedbacts.models.promotion import GraduationRecord, PromotionType, StudentPromotionHistory
from feedbacts.models.student import Student
from feedbacts.models.user import User, UserRole, UserStatus
from feedbacts.services import promotion_service


def test_promote_moves_student_and_appends_history(db, admin, student, program, make_program):
    fourth_year = make_program(program_code="BSIT", year_level=4, section="A")
    student_id = student.student.id

    result = promotion_service.promote_students(db, [student_id], fourth_year.id, admin.id, "end of term")

    assert result["promoted"] == 1
    assert result["errors"] == []
    db.expire_all()
    profile = db.get(Student, student_id)
    assert profile.program_id == fourth_year.id
    assert profile.previous_program_id == program.id
    assert profile.academic_year == 4
    assert profile.promotion_date == date.today()

    history = db.query(StudentPromotionHistory).filter(StudentPromotionHistory.student_id == student_id).all()
    assert len(history) == 1
    assert history[0].promotion_type == PromotionType.academic_year
    assert history[0].previous_program_id == program.id
    assert history[0].new_program_id == fourth_year.id
    assert history[0].promoted_by == admin.id


def test_promote_collects_per_student_errors(db, admin, student, make_program):
    target = make_program(program_code="BSIT", year_level=4, section="A")

    result = promotion_service.promote_students(db, [student.student.id, 9999], target.id, admin.id)

    assert result["promoted"] == 1
    assert result["errors"] == [{"student_id": 9999, "error": "Student not found"}]


def test_promote_unknown_program_is_404(client, admin, student, headers_for):
    res = client.post(
        "/api/students/promote", json={"studentIds": [student.student.id], "newProgramId": 999}, headers=headers_for(admin)
    )
    assert res.status_code == 404
    assert res.json()["message"] == "Target program not found"


def test_graduate_turns_student_into_alumni(db, admin, student, program):
    student_id = student.student.id
    user_id = student.id

    result = promotion_service.graduate_students(db, [student_id], 2026, admin.id, degree="BSIT", honors="Cum Laude")

    assert result["graduated"] == 1
    db.expire_all()
    user = db.get(User, user_id)
    assert user.role == UserRole.alumni
    alumni = db.query(Alumni).filter(Alumni.user_id == user_id).one()
    assert alumni.grad_year == 2026
    assert alumni.contact == "0917-000-0000"

    profile = db.get(Student, student_id)
    assert profile.program_id is None
    assert profile.previous_program_id == program.id

    record = db.query(GraduationRecord).one()
    assert (record.program_id, record.honors) == (program.id, "Cum Laude")
    history = db.query(StudentPromotionHistory).one()
    assert history.promotion_type == PromotionType.graduation
    assert history.new_program_id is None


def test_graduating_twice_is_reported(db, admin, student):
    student_id = student.student.id
    promotion_service.graduate_students(db, [student_id], 2026, admin.id)

    result = promotion_service.graduate_students(db, [student_id], 2026, admin.id)

    assert result["graduated"] == 0
    assert result["errors"] == [{"student_id": student_id, "error": "Student has already graduated"}]
    assert db.query(Alumni).count() == 1


def test_target_programs_next_year_same_code(db, make_program):
    current = make_program(program_code="BSIT", year_level=2, section="A")
    same_a = make_program(program_code="BSIT", year_level=3, section="A")
    same_b = make_program(program_code="BSIT", year_level=3, section="B")
    make_program(program_code="BSCS", year_level=3, section="A")

    result = promotion_service.get_target_programs(db, current.id)

    assert [p["id"] for p in result["programs"]] == [same_a.id, same_b.id]


def test_target_programs_fall_back_to_department(db, make_program):
    current = make_program(program_code="BSIT", year_level=2, section="A")
    other = make_program(program_code="BSCS", year_level=3, section="A")

    result = promotion_service.get_target_programs(db, current.id)

    assert [p["id"] for p in result["programs"]] == [other.id]


def test_senior_high_moves_to_first_year_college(db, make_program):
    grade_12 = make_program(department="Senior High", program_code="STEM", year_level=12, section="A")
    college_1 = make_program(department="College", program_code="BSIT", year_level=1, section="A")

    result = promotion_service.get_target_programs(db, grade_12.id)

    assert [p["id"] for p in result["programs"]] == [college_1.id]


def test_final_college_year_suggests_graduation(client, admin, make_program, headers_for):
    fourth = make_program(program_code="BSIT", year_level=4, section="A")

    res = client.get(f"/api/students/target-programs/{fourth.id}", headers=headers_for(admin))

    body = res.json()
    assert body["programs"] == []
    assert body["message"] == "Students are at final year - consider graduation instead"


def test_eligible_students_filters(client, make_user, make_program, admin, headers_for):
    bsit = make_program(program_code="BSIT", year_level=3, section="A")
    bscs = make_program(program_code="BSCS", year_level=1, section="A")
    a = make_user(UserRole.student, program=bsit)
    make_user(UserRole.student, program=bscs)
    make_user(UserRole.student, program=bsit, status=UserStatus.inactive)

    res = client.get("/api/students/eligible", params={"course_section": "BSIT 3-A"}, headers=headers_for(admin))

    body = res.json()
    assert body["count"] == 1
    assert body["students"][0]["user_id"] == a.id
    assert body["students"][0]["program"]["course_section"] == "BSIT 3-A"


def test_promotion_endpoints_are_admin_only(client, student, headers_for):
    res = client.get("/api/students/eligible", headers=headers_for(student))
    assert res.status_code == 403


def test_promotion_history_via_api(client, db, admin, student, make_program, headers_for):
    target = make_program(program_code="BSIT", year_level=4, section="A")
    headers = headers_for(admin)
    client.post("/api/students/promote", json={"studentIds": [student.student.id], "newProgramId": target.id}, headers=headers)
    client.post("/api/students/graduate", json={"studentIds": [student.student.id], "graduationYear": 2026}, headers=headers)

    body = client.get("/api/students/promotion-history", headers=headers).json()
    assert body["total"] == 2
    types = {h["promotion_type"] for h in body["history"]}
    assert types == {"academic_year", "graduation"}
    promoted = next(h for h in body["history"] if h["promotion_type"] == "academic_year")
    assert (promoted["old_program_code"], promoted["old_year_level"]) == ("BSIT", 3)
    assert (promoted["new_program_code"], promoted["new_year_level"]) == ("BSIT", 4)
    assert promoted["promoted_by_name"] == admin.full_name

    body = client.get(
        "/api/students/promotion-history", params={"promotion_type": "graduation"}, headers=headers
    ).json()
    assert body["total"] == 1


def test_programs_grouped_by_department_and_code(client, admin, make_program, headers_for):
    make_program(program_code="BSIT", year_level=1, section="A")
    make_program(program_code="BSIT", year_level=2, section="A")
    make_program(department="Senior High", program_code="STEM", year_level=11, section="A")

    body = client.get("/api/students/programs", headers=headers_for(admin)).json()

    assert len(body["programs"]) == 3
    assert len(body["grouped"]["College"]["BSIT"]) == 2
    assert len(body["grouped"]["Senior High"]["STEM"]) == 1


def test_repeated_student_id_is_promoted_once(db, admin, student, program, make_program):
    target = make_program(program_code="BSIT", year_level=4, section="A")
    student_id = student.student.id

    result = promotion_service.promote_students(db, [student_id, student_id], target.id, admin.id)

    assert result["promoted"] == 1
    assert result["errors"] == []
    db.expire_all()
    assert db.get(Student, student_id).previous_program_id == program.id
    assert db.query(StudentPromotionHistory).count() == 1


def test_promoting_into_current_program_is_an_error(db, admin, student, program):
    student_id = student.student.id

    result = promotion_service.promote_students(db, [student_id], program.id, admin.id)

    assert result["promoted"] == 0
    assert result["errors"] == [{"student_id": student_id, "error": "Student is already in the target program"}]
    assert db.query(StudentPromotionHistory).count() == 0


def test_repeated_student_id_is_graduated_once(db, admin, student):
    student_id = student.student.id

    result = promotion_service.graduate_students(db, [student_id, student_id], 2026, admin.id)

    assert result["graduated"] == 1
    assert result["errors"] == []
    assert db.query(GraduationRecord).count() == 1
