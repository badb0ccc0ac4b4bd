from datetime import date, datetime, time

from feedbacts.models.form import Form, FormStatus
from feedbacts.models.form_assignment import FormAssignment, FormDeployment
from feedbacts.models.user import UserRole, UserStatus
from feedbacts.services.form_service import resolve_target_audience


def _assigned(db, form_id):
    db.expire_all()
    rows = db.query(FormAssignment.user_id).filter(FormAssignment.form_id == form_id).all()
    return sorted(uid for (uid,) in rows)


def test_resolve_target_audience_patterns(db, make_user, make_program, admin, instructor):
    bsit = make_program(program_code="BSIT", year_level=3, section="A")
    bscs = make_program(program_code="BSCS", year_level=1, section="A")
    s1 = make_user(UserRole.student, program=bsit)
    s2 = make_user(UserRole.student, program=bscs)
    make_user(UserRole.student, program=bsit, status=UserStatus.pending)
    other_instructor = make_user(UserRole.instructor, department="Math Department")
    alum = make_user(UserRole.alumni, company="Acme")
    boss = make_user(UserRole.employer, company="Acme")

    assert resolve_target_audience(db, "Students") == [s1.id, s2.id]
    assert resolve_target_audience(db, "Students - BSIT 3-A") == [s1.id]
    assert resolve_target_audience(db, "Instructors") == [instructor.id, other_instructor.id]
    assert resolve_target_audience(db, "Instructors - IT Department") == [instructor.id]
    assert resolve_target_audience(db, "Alumni - Acme") == [alum.id]
    assert resolve_target_audience(db, "Employers - Acme") == [boss.id]
    assert len(resolve_target_audience(db, "All Users")) == 7
    assert resolve_target_audience(db, "Martians") == []


def test_deploy_activates_and_assigns(client, db, instructor, student, make_user, headers_for, create_form):
    make_user(UserRole.alumni)
    form_id = create_form(instructor)

    res = client.post(
        f"/api/forms/{form_id}/deploy",
        json={"targetFilters": {"target_audience": "Students"}},
        headers=headers_for(instructor),
    )

    assert res.status_code == 200, res.json()
    assert res.json()["assigned_count"] == 1
    assert _assigned(db, form_id) == [student.id]

    form = db.get(Form, form_id)
    assert form.status == FormStatus.active
    deployment = db.query(FormDeployment).filter(FormDeployment.form_id == form_id).one()
    assert deployment.deployed_by == instructor.id
    assert deployment.target_filters == {"target_audience": "Students"}


def test_deploy_is_idempotent_for_fixed_filters(client, db, instructor, student, make_user, program, headers_for, create_form):
    make_user(UserRole.student, program=program)
    form_id = create_form(instructor)
    body = {"targetAudience": "Students - BSIT 3-A"}

    client.post(f"/api/forms/{form_id}/deploy", json=body, headers=headers_for(instructor))
    first = _assigned(db, form_id)
    client.post(f"/api/forms/{form_id}/deploy", json=body, headers=headers_for(instructor))
    second = _assigned(db, form_id)

    assert len(first) == 2
    assert first == second
    assert db.query(FormDeployment).filter(FormDeployment.form_id == form_id).count() == 1


def test_redeploy_replaces_assignment_set(client, db, instructor, student, make_user, headers_for, create_form):
    alum = make_user(UserRole.alumni)
    form_id = create_form(instructor)
    headers = headers_for(instructor)

    client.post(f"/api/forms/{form_id}/deploy", json={"targetAudience": "Students"}, headers=headers)
    client.post(f"/api/forms/{form_id}/deploy", json={"targetAudience": "Alumni"}, headers=headers)

    assert _assigned(db, form_id) == [alum.id]


def test_deploy_to_explicit_user_ids_skips_unknown(client, db, instructor, student, headers_for, create_form):
    form_id = create_form(instructor)

    res = client.post(
        f"/api/forms/{form_id}/deploy", json={"userIds": [student.id, 9999]}, headers=headers_for(instructor)
    )

    assert res.json()["assigned_count"] == 1
    assert _assigned(db, form_id) == [student.id]


def test_deploy_window_defaults_to_whole_days(client, db, instructor, student, headers_for, create_form):
    form_id = create_form(instructor)

    client.post(
        f"/api/forms/{form_id}/deploy",
        json={"targetAudience": "Students", "startDate": "2030-01-10", "endDate": "2030-01-20", "endTime": "17:30"},
        headers=headers_for(instructor),
    )

    db.expire_all()
    form = db.get(Form, form_id)
    assert form.start_date == datetime(2030, 1, 10, 0, 0, 0)
    assert form.end_date == datetime(2030, 1, 20, 17, 30)


def test_deploy_requires_target(client, instructor, headers_for, create_form):
    form_id = create_form(instructor)
    res = client.post(f"/api/forms/{form_id}/deploy", json={}, headers=headers_for(instructor))
    assert res.status_code == 400
    assert res.json()["message"] == "Either userIds or targetFilters is required"


def test_deploy_is_owner_only(client, admin, instructor, headers_for, create_form):
    form_id = create_form(instructor)
    res = client.post(f"/api/forms/{form_id}/deploy", json={"targetAudience": "Students"}, headers=headers_for(admin))
    assert res.status_code == 403


def test_assigned_forms_carry_submitted_flag(client, instructor, student, headers_for, create_form):
    form_id = create_form(instructor)
    draft_id = create_form(instructor)
    client.post(f"/api/forms/{form_id}/deploy", json={"targetAudience": "Students"}, headers=headers_for(instructor))

    res = client.get("/api/users/assigned-forms", headers=headers_for(student))
    forms = res.json()["forms"]
    assert [f["id"] for f in forms] == [form_id]
    assert forms[0]["submitted"] is False
    assert draft_id not in [f["id"] for f in forms]

    client.post(f"/api/forms/{form_id}/submit", json={"answers": {}}, headers=headers_for(student))
    questions = client.get(f"/api/forms/{form_id}", headers=headers_for(student)).json()["form"]["questions"]
    answers = {str(questions[0]["id"]): 5, str(questions[1]["id"]): "B"}
    client.post(f"/api/forms/{form_id}/submit", json={"answers": answers}, headers=headers_for(student))

    forms = client.get("/api/users/assigned-forms", headers=headers_for(student)).json()["forms"]
    assert forms[0]["submitted"] is True


def test_patching_window_updates_deployment(client, db, instructor, student, headers_for, create_form):
    form_id = create_form(instructor)
    headers = headers_for(instructor)
    client.post(
        f"/api/forms/{form_id}/deploy",
        json={"targetAudience": "Students", "startDate": "2030-01-10", "endDate": "2030-01-20"},
        headers=headers,
    )

    res = client.patch(f"/api/forms/{form_id}", json={"endDate": "2030-02-01T12:00:00"}, headers=headers)

    assert res.status_code == 200, res.json()
    db.expire_all()
    deployment = db.query(FormDeployment).filter(FormDeployment.form_id == form_id).one()
    assert (deployment.start_date, deployment.start_time) == (date(2030, 1, 10), time(0, 0))
    assert (deployment.end_date, deployment.end_time) == (date(2030, 2, 1), time(12, 0))
