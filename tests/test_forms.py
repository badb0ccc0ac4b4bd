from feedbacts.models.form import Form, FormStatus, Question, QuestionOption, Section
from feedbacts.models.user import UserRole


def test_create_form_persists_full_graph(client, db, instructor, headers_for, form_payload):
    res = client.post("/api/forms", json=form_payload, headers=headers_for(instructor))

    assert res.status_code == 201
    body = res.json()
    assert body["success"] is True
    assert body["question_count"] == 2

    form = db.get(Form, body["form_id"])
    assert form.status == FormStatus.draft
    assert form.created_by == instructor.id
    assert len(form.questions) == len(form_payload["questions"])
    assert len(form.sections) == 1
    # client-side section ids are remapped to the stored section
    assert all(q.section_id == form.sections[0].id for q in form.questions)

    rating, choice = form.questions
    assert (rating.min_value, rating.max_value) == (1, 5)
    assert [o.option_text for o in choice.options] == ["A", "B"]


def test_create_form_validation_failure_writes_nothing(client, db, instructor, headers_for, form_payload):
    form_payload["title"] = "ab"
    form_payload["questions"][1]["options"] = ["A"]

    res = client.post("/api/forms", json=form_payload, headers=headers_for(instructor))

    assert res.status_code == 400
    assert res.json() == {
        "success": False,
        "message": "Title must be at least 3 characters long, "
        "Question 2: Choice-based questions must have at least 2 options",
    }
    assert db.query(Form).count() == 0
    assert db.query(Question).count() == 0


def test_create_form_rejects_reversed_window(client, instructor, headers_for, form_payload):
    form_payload["startDate"] = "2026-05-10T00:00:00"
    form_payload["endDate"] = "2026-05-01T00:00:00"
    res = client.post("/api/forms", json=form_payload, headers=headers_for(instructor))
    assert res.status_code == 400
    assert res.json()["message"] == "Start date must be before end date"


def test_students_cannot_create_forms(client, student, headers_for, form_payload):
    res = client.post("/api/forms", json=form_payload, headers=headers_for(student))
    assert res.status_code == 403
    assert res.json()["success"] is False


def test_requests_without_token_are_rejected(client):
    res = client.get("/api/forms")
    assert res.status_code == 401
    assert res.json() == {"success": False, "message": "No token provided"}


def test_malformed_body_uses_validation_envelope(client, instructor, headers_for):
    res = client.post("/api/forms", json={"questions": "nope"}, headers=headers_for(instructor))
    assert res.status_code == 400
    body = res.json()
    assert body["message"] == "Validation failed"
    assert body["errors"]


def test_get_form_returns_ordered_questions(client, instructor, student, headers_for, create_form):
    form_id = create_form(instructor)

    res = client.get(f"/api/forms/{form_id}", headers=headers_for(student))

    assert res.status_code == 200
    form = res.json()["form"]
    assert form["question_count"] == 2
    assert form["submission_count"] == 0
    assert form["creator_name"] == instructor.full_name
    assert [q["type"] for q in form["questions"]] == ["rating", "multiple-choice"]
    assert [o["option_text"] for o in form["questions"][1]["options"]] == ["A", "B"]


def test_get_missing_form_is_404(client, student, headers_for):
    res = client.get("/api/forms/999", headers=headers_for(student))
    assert res.status_code == 404
    assert res.json() == {"success": False, "message": "Form not found"}


def test_list_forms_filters_and_paginates(client, instructor, headers_for, form_payload, create_form):
    for i in range(3):
        create_form(instructor, dict(form_payload, title=f"Evaluation {i}"))
    template_id = create_form(instructor, dict(form_payload, title="Alumni tracer", isTemplate=True))
    headers = headers_for(instructor)

    res = client.get("/api/forms", params={"page": 1, "limit": 2}, headers=headers)
    body = res.json()
    assert len(body["forms"]) == 2
    assert body["pagination"] == {"total": 4, "page": 1, "limit": 2, "total_pages": 2}

    res = client.get("/api/forms", params={"type": "templates"}, headers=headers)
    assert [f["id"] for f in res.json()["forms"]] == [template_id]

    res = client.get("/api/forms", params={"search": "tracer"}, headers=headers)
    assert res.json()["pagination"]["total"] == 1

    res = client.get("/api/forms", params={"status": "active"}, headers=headers)
    assert res.json()["forms"] == []


def test_update_form_requires_owner(client, make_user, instructor, headers_for, create_form):
    form_id = create_form(instructor)
    other = make_user(UserRole.instructor)

    res = client.patch(f"/api/forms/{form_id}", json={"title": "Hijacked"}, headers=headers_for(other))

    assert res.status_code == 403
    assert res.json() == {"success": False, "message": "Access denied"}


def test_update_form_with_nothing_to_update(client, instructor, headers_for, create_form):
    form_id = create_form(instructor)
    res = client.patch(f"/api/forms/{form_id}", json={}, headers=headers_for(instructor))
    assert res.status_code == 400
    assert res.json()["message"] == "No valid fields to update"


def test_update_form_reconciles_questions(client, db, instructor, headers_for, create_form):
    form_id = create_form(instructor)
    form = db.get(Form, form_id)
    rating_id, choice_id = [q.id for q in form.questions]
    section_id = form.sections[0].id

    payload = {
        "title": "Course Evaluation - revised",
        "sections": [
            {"id": section_id, "title": "Teaching (renamed)"},
            {"id": "section_2", "title": "Facilities"},
        ],
        "questions": [
            # kept and edited, options replaced
            {"id": choice_id, "question": "Pick one", "type": "dropdown", "options": ["X", "Y", "Z"], "sectionId": section_id},
            # new, attached to the new section
            {"id": "q_9", "question": "Any comments?", "type": "textarea", "sectionId": "section_2"},
        ],
    }
    res = client.patch(f"/api/forms/{form_id}", json=payload, headers=headers_for(instructor))
    assert res.status_code == 200, res.json()

    db.expire_all()
    form = db.get(Form, form_id)
    assert form.title == "Course Evaluation - revised"
    assert [s.title for s in form.sections] == ["Teaching (renamed)", "Facilities"]
    assert [q.question_type for q in form.questions] == ["dropdown", "textarea"]
    assert form.questions[0].id == choice_id
    assert [o.option_text for o in form.questions[0].options] == ["X", "Y", "Z"]
    assert form.questions[1].section_id == form.sections[1].id
    # the rating question was left out of the payload
    assert db.get(Question, rating_id) is None
    assert db.query(QuestionOption).count() == 3


def test_update_form_rejects_bad_question(client, instructor, headers_for, create_form):
    form_id = create_form(instructor)
    payload = {"questions": [{"question": "Rate", "type": "rating", "min": 5, "max": 1}]}
    res = client.patch(f"/api/forms/{form_id}", json=payload, headers=headers_for(instructor))
    assert res.status_code == 400
    assert res.json()["message"] == "Question 1: Rating min must be less than max"


def test_delete_form_cascades(client, db, instructor, headers_for, create_form):
    form_id = create_form(instructor)

    res = client.delete(f"/api/forms/{form_id}", headers=headers_for(instructor))

    assert res.status_code == 200
    assert db.query(Form).count() == 0
    assert db.query(Section).count() == 0
    assert db.query(Question).count() == 0
    assert db.query(QuestionOption).count() == 0


def test_duplicate_form_copies_graph(client, db, instructor, headers_for, create_form):
    form_id = create_form(instructor)

    res = client.post(f"/api/forms/{form_id}/duplicate", headers=headers_for(instructor))

    assert res.status_code == 201
    copy = db.get(Form, res.json()["form_id"])
    assert copy.title == "Course Evaluation - IT 301 (Copy)"
    assert copy.is_template is False
    assert copy.status == FormStatus.draft
    assert len(copy.questions) == 2
    assert copy.questions[0].section_id == copy.sections[0].id
    assert [o.option_text for o in copy.questions[1].options] == ["A", "B"]


def test_duplicate_needs_owner_or_template(client, make_user, instructor, headers_for, create_form):
    form_id = create_form(instructor)
    other = make_user(UserRole.instructor)

    res = client.post(f"/api/forms/{form_id}/duplicate", headers=headers_for(other))
    assert res.status_code == 403

    client.post(f"/api/forms/{form_id}/save-as-template", headers=headers_for(instructor))
    res = client.post(f"/api/forms/{form_id}/duplicate", headers=headers_for(other))
    assert res.status_code == 201


def test_save_as_template(client, db, instructor, headers_for, create_form):
    form_id = create_form(instructor)

    res = client.post(f"/api/forms/{form_id}/save-as-template", headers=headers_for(instructor))

    assert res.json()["template_id"] == form_id
    form = db.get(Form, form_id)
    assert form.is_template is True
    assert form.status == FormStatus.active


def test_categories_crud(client, admin, student, headers_for):
    res = client.post("/api/form-categories", json={"name": "Course Evaluation"}, headers=headers_for(admin))
    assert res.status_code == 201
    category_id = res.json()["category"]["id"]

    res = client.post("/api/form-categories", json={"name": "Course Evaluation"}, headers=headers_for(admin))
    assert res.status_code == 400
    assert res.json()["message"] == "Category already exists"

    res = client.post("/api/form-categories", json={"name": "Other"}, headers=headers_for(student))
    assert res.status_code == 403

    res = client.get("/api/form-categories", headers=headers_for(student))
    assert [c["name"] for c in res.json()["categories"]] == ["Course Evaluation"]

    res = client.delete(f"/api/form-categories/{category_id}", headers=headers_for(admin))
    assert res.status_code == 200
    res = client.delete(f"/api/form-categories/{category_id}", headers=headers_for(admin))
    assert res.status_code == 404
