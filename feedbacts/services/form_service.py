import logging
from datetime import date, datetime, time
from typing import Dict, List, Optional

from fastapi import HTTPException, status as fastapi_status
from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from feedbacts.models.alumni import Alumni
from feedbacts.models.course import Program, SubjectInstructor
from feedbacts.models.employer import Employer
from feedbacts.models.form import (
    CHOICE_TYPES,
    SCALE_TYPES,
    Form,
    FormCategory,
    FormStatus,
    Question,
    QuestionOption,
    Section,
)
from feedbacts.models.form_assignment import FormAssignment, FormDeployment
from feedbacts.models.form_response import FormResponse
from feedbacts.models.instructor import Instructor
from feedbacts.models.student import Student
from feedbacts.models.user import User, UserRole, UserStatus
from feedbacts.schemas.form_schema import DeployRequest, FormCreate, FormUpdate, QuestionIn, SectionIn
from feedbacts.utils.formatting import format_pagination, iso
from feedbacts.utils.validation import (
    DEFAULT_SCALE_MAX,
    DEFAULT_SCALE_MIN,
    validate_form_data,
    validate_question,
)

logger = logging.getLogger(__name__)

ALL_USERS = "All Users"
ROLE_AUDIENCES = {
    "Students": UserRole.student,
    "Instructors": UserRole.instructor,
    "Alumni": UserRole.alumni,
    "Employers": UserRole.employer,
}
END_OF_DAY = time(23, 59, 59)


# == Helpers

def _get_form_or_404(db: Session, form_id: int) -> Form:
    form = db.query(Form).filter(Form.id == form_id).first()
    if not form:
        raise HTTPException(status_code=fastapi_status.HTTP_404_NOT_FOUND, detail="Form not found")
    return form


def _get_owned_form(db: Session, form_id: int, user_id: int) -> Form:
    form = _get_form_or_404(db, form_id)
    if form.created_by != user_id:
        raise HTTPException(status_code=fastapi_status.HTTP_403_FORBIDDEN, detail="Access denied")
    return form


def _bad_request(errors: List[str]):
    raise HTTPException(status_code=fastapi_status.HTTP_400_BAD_REQUEST, detail=", ".join(errors))


def _question_payload(q: QuestionIn) -> Dict:
    return {"question": q.question, "type": q.type, "options": q.option_texts(), "min": q.min, "max": q.max}


def _question_errors(questions: List[QuestionIn]) -> List[str]:
    errors = []
    for index, q in enumerate(questions):
        errors.extend(validate_question(_question_payload(q), index))
    return errors


def _window_errors(start_date, end_date) -> List[str]:
    if start_date and end_date and start_date > end_date:
        return ["Start date must be before end date"]
    return []


def _subject_errors(db: Session, subject_instructor_id: Optional[int]) -> List[str]:
    if subject_instructor_id is None:
        return []
    if not db.query(SubjectInstructor.id).filter(SubjectInstructor.id == subject_instructor_id).first():
        return ["Subject assignment not found"]
    return []


def _fill_question(question: Question, q: QuestionIn, index: int, section: Optional[Section]) -> None:
    question.question_text = q.question.strip()
    question.question_type = q.type
    question.description = q.description
    question.required = q.required
    question.order_index = q.order_index if q.order_index is not None else index
    question.section = section

    if q.type in SCALE_TYPES:
        question.min_value = q.min if q.min is not None else DEFAULT_SCALE_MIN
        question.max_value = q.max if q.max is not None else DEFAULT_SCALE_MAX
    else:
        question.min_value = None
        question.max_value = None

    # options are replaced wholesale; delete-orphan removes the old rows
    if q.type in CHOICE_TYPES:
        question.options = [
            QuestionOption(option_text=text, order_index=i) for i, text in enumerate(q.option_texts())
        ]
    else:
        question.options = []


def _section_ref(sections: Dict[str, Section], client_id) -> Optional[Section]:
    if client_id is None:
        return None
    return sections.get(str(client_id))


def _add_sections(form: Form, sections: List[SectionIn]) -> Dict[str, Section]:
    """Attach new sections and key them by the id the client sent."""
    by_client_id = {}
    for index, s in enumerate(sections):
        section = Section(
            title=s.title,
            description=s.description,
            order_index=s.order_index if s.order_index is not None else index,
        )
        form.sections.append(section)
        if s.id is not None:
            by_client_id[str(s.id)] = section
    return by_client_id


def _reconcile_sections(form: Form, sections: List[SectionIn]) -> Dict[str, Section]:
    existing = {s.id: s for s in form.sections}
    by_client_id = {}
    kept = set()

    for index, s in enumerate(sections):
        order_index = s.order_index if s.order_index is not None else index
        if isinstance(s.id, int) and s.id in existing:
            section = existing[s.id]
            section.title = s.title
            section.description = s.description
            section.order_index = order_index
            kept.add(s.id)
        else:
            section = Section(title=s.title, description=s.description, order_index=order_index)
            form.sections.append(section)
        if s.id is not None:
            by_client_id[str(s.id)] = section

    for section_id, section in existing.items():
        if section_id not in kept:
            for question in list(section.questions):
                question.section = None
            form.sections.remove(section)

    return by_client_id


def _reconcile_questions(form: Form, questions: List[QuestionIn], sections: Dict[str, Section]) -> None:
    existing = {q.id: q for q in form.questions}
    kept = set()

    for index, q in enumerate(questions):
        section = _section_ref(sections, q.section_id)
        if isinstance(q.id, int) and q.id in existing:
            _fill_question(existing[q.id], q, index, section)
            kept.add(q.id)
        else:
            question = Question()
            _fill_question(question, q, index, section)
            form.questions.append(question)

    for question_id, question in existing.items():
        if question_id not in kept:
            form.questions.remove(question)


def _question_dict(q: Question) -> Dict:
    return {
        "id": q.id,
        "section_id": q.section_id,
        "question": q.question_text,
        "type": q.question_type,
        "description": q.description,
        "required": q.required,
        "order_index": q.order_index,
        "min": q.min_value,
        "max": q.max_value,
        "options": [
            {"id": o.id, "option_text": o.option_text, "order_index": o.order_index} for o in q.options
        ],
    }


def _form_dict(form: Form, creator_name=None, question_count=0, submission_count=0) -> Dict:
    return {
        "id": form.id,
        "title": form.title,
        "description": form.description,
        "category": form.category,
        "target_audience": form.target_audience,
        "status": form.status.value,
        "is_template": form.is_template,
        "start_date": iso(form.start_date),
        "end_date": iso(form.end_date),
        "image_url": form.image_url,
        "subject_instructor_id": form.subject_instructor_id,
        "created_by": form.created_by,
        "creator_name": creator_name,
        "created_at": iso(form.created_at),
        "updated_at": iso(form.updated_at),
        "question_count": question_count or 0,
        "submission_count": submission_count or 0,
    }


def _count_columns():
    question_count = (
        select(func.count(Question.id)).where(Question.form_id == Form.id).correlate(Form).scalar_subquery()
    )
    submission_count = (
        select(func.count(FormResponse.id)).where(FormResponse.form_id == Form.id).correlate(Form).scalar_subquery()
    )
    return question_count.label("question_count"), submission_count.label("submission_count")


# == Reads

def list_forms(
    db: Session,
    form_type: str = "all",
    status: str = "all",
    search: str = "",
    page: int = 1,
    limit: int = 10,
    created_by: Optional[int] = None,
) -> Dict:
    """Filtered, paginated form listing, newest first."""
    question_count, submission_count = _count_columns()
    query = db.query(Form, User.full_name, question_count, submission_count).outerjoin(
        User, Form.created_by == User.id
    )

    if form_type == "templates":
        query = query.filter(Form.is_template.is_(True))
    elif form_type == "custom":
        query = query.filter(Form.is_template.is_(False))

    if status and status != "all":
        try:
            query = query.filter(Form.status == FormStatus(status))
        except ValueError:
            _bad_request([f"Invalid status '{status}'"])

    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(Form.title.like(pattern), Form.description.like(pattern)))

    if created_by is not None:
        query = query.filter(Form.created_by == created_by)

    total = query.count()
    rows = query.order_by(Form.created_at.desc(), Form.id.desc()).limit(limit).offset((page - 1) * limit).all()

    return {
        "forms": [_form_dict(form, name, qc, sc) for form, name, qc, sc in rows],
        "pagination": format_pagination(total, page, limit),
    }


def get_form(db: Session, form_id: int) -> Dict:
    """Full form graph: sections, ordered questions and their options."""
    question_count, submission_count = _count_columns()
    row = (
        db.query(Form, User.full_name, question_count, submission_count)
        .outerjoin(User, Form.created_by == User.id)
        .filter(Form.id == form_id)
        .first()
    )
    if not row:
        raise HTTPException(status_code=fastapi_status.HTTP_404_NOT_FOUND, detail="Form not found")

    form, creator_name, qc, sc = row
    data = _form_dict(form, creator_name, qc, sc)
    data["sections"] = [
        {"id": s.id, "title": s.title, "description": s.description, "order_index": s.order_index}
        for s in form.sections
    ]
    data["questions"] = [_question_dict(q) for q in form.questions]

    deployment = form.deployment
    data["deployment"] = None if deployment is None else {
        "deployed_by": deployment.deployed_by,
        "start_date": iso(deployment.start_date),
        "end_date": iso(deployment.end_date),
        "start_time": iso(deployment.start_time),
        "end_time": iso(deployment.end_time),
        "target_filters": deployment.target_filters,
        "deployment_status": deployment.deployment_status,
        "deployed_at": iso(deployment.deployed_at),
    }
    return data


def get_assigned_forms(db: Session, user_id: int) -> List[Dict]:
    """Active forms assigned to the user, with a submitted flag each."""
    assigned = select(FormAssignment.form_id).where(FormAssignment.user_id == user_id)
    forms = (
        db.query(Form)
        .filter(
            Form.status == FormStatus.active,
            or_(Form.id.in_(assigned), Form.target_audience == ALL_USERS),
        )
        .order_by(Form.created_at.desc())
        .all()
    )
    submitted = {
        form_id for (form_id,) in db.query(FormResponse.form_id).filter(FormResponse.user_id == user_id).all()
    }

    result = []
    for form in forms:
        item = _form_dict(form, question_count=len(form.questions))
        item["submitted"] = form.id in submitted
        result.append(item)
    return result


# == Writes

def create_form(db: Session, data: FormCreate, owner_id: int) -> Dict:
    """Validate and insert a form with its sections, questions and options."""
    errors = validate_form_data(data.title, data.category, data.target_audience)
    errors += _question_errors(data.questions)
    errors += _window_errors(data.start_date, data.end_date)
    errors += _subject_errors(db, data.subject_instructor_id)
    if errors:
        _bad_request(errors)

    form = Form(
        title=data.title.strip(),
        description=data.description,
        category=data.category,
        target_audience=data.target_audience,
        start_date=data.start_date,
        end_date=data.end_date,
        image_url=data.image_url,
        subject_instructor_id=data.subject_instructor_id,
        is_template=data.is_template,
        status=FormStatus.draft,
        created_by=owner_id,
    )
    try:
        db.add(form)
        db.flush()

        sections = _add_sections(form, data.sections)
        for index, q in enumerate(data.questions):
            question = Question()
            _fill_question(question, q, index, _section_ref(sections, q.section_id))
            form.questions.append(question)

        db.commit()
        db.refresh(form)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Create form failed for user %s: %s", owner_id, e)
        raise HTTPException(status_code=fastapi_status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to create form")

    logger.info("Form %s created by user %s with %d questions", form.id, owner_id, len(data.questions))
    return {"form_id": form.id, "question_count": len(data.questions)}


def update_form(db: Session, form_id: int, updates: FormUpdate, user_id: int) -> Dict:
    """Owner-only update; sections/questions, when sent, replace the stored set."""
    form = _get_owned_form(db, form_id, user_id)

    fields = updates.model_dump(exclude_unset=True, exclude={"sections", "questions"})
    if not fields and updates.sections is None and updates.questions is None:
        _bad_request(["No valid fields to update"])

    errors = []
    if "title" in fields and (not fields["title"] or len(fields["title"].strip()) < 3):
        errors.append("Title must be at least 3 characters long")
    if "category" in fields and not fields["category"]:
        errors.append("Category is required")
    if "target_audience" in fields and not fields["target_audience"]:
        errors.append("Target audience is required")
    if "status" in fields:
        try:
            fields["status"] = FormStatus(fields["status"])
        except ValueError:
            errors.append(f"Invalid status '{fields['status']}'")
    if updates.questions is not None:
        errors += _question_errors(updates.questions)
    errors += _window_errors(fields.get("start_date", form.start_date), fields.get("end_date", form.end_date))
    errors += _subject_errors(db, fields.get("subject_instructor_id"))
    if errors:
        _bad_request(errors)

    try:
        for key, value in fields.items():
            setattr(form, key, value.strip() if key == "title" else value)

        # a deployed form keeps its deployment row on the same window
        if form.deployment is not None and ("start_date" in fields or "end_date" in fields):
            _set_deployment_window(form.deployment, form.start_date, form.end_date)

        if updates.sections is not None:
            sections = _reconcile_sections(form, updates.sections)
        else:
            sections = {str(s.id): s for s in form.sections}

        if updates.questions is not None:
            _reconcile_questions(form, updates.questions, sections)

        form.updated_at = datetime.utcnow()
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Update form %s failed: %s", form_id, e)
        raise HTTPException(status_code=fastapi_status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to update form")

    return {"form_id": form_id}


def delete_form(db: Session, form_id: int, user_id: int) -> None:
    form = _get_owned_form(db, form_id, user_id)
    try:
        db.delete(form)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Delete form %s failed: %s", form_id, e)
        raise HTTPException(status_code=fastapi_status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to delete form")
    logger.info("Form %s deleted by user %s", form_id, user_id)


def duplicate_form(db: Session, form_id: int, user_id: int) -> Dict:
    """Copy a form (own, or any template) as a new draft owned by the caller."""
    form = _get_form_or_404(db, form_id)
    if form.created_by != user_id and not form.is_template:
        raise HTTPException(status_code=fastapi_status.HTTP_403_FORBIDDEN, detail="Access denied")

    copy = FormCreate(
        title=f"{form.title} (Copy)",
        description=form.description,
        category=form.category,
        target_audience=form.target_audience,
        start_date=form.start_date,
        end_date=form.end_date,
        image_url=form.image_url,
        subject_instructor_id=form.subject_instructor_id,
        is_template=False,
        sections=[
            SectionIn(id=f"section_{s.id}", title=s.title, description=s.description, order_index=s.order_index)
            for s in form.sections
        ],
        questions=[
            QuestionIn(
                question=q.question_text,
                type=q.question_type,
                description=q.description,
                required=q.required,
                options=[o.option_text for o in q.options],
                min=q.min_value,
                max=q.max_value,
                section_id=f"section_{q.section_id}" if q.section_id else None,
                order_index=q.order_index,
            )
            for q in form.questions
        ],
    )
    return create_form(db, copy, user_id)


def save_as_template(db: Session, form_id: int, user_id: int) -> Dict:
    form = _get_owned_form(db, form_id, user_id)
    form.is_template = True
    form.status = FormStatus.active
    db.commit()
    return {"template_id": form.id}


def resolve_target_audience(db: Session, audience: str) -> List[int]:
    """Active user ids matching a target-audience string such as 'Students - BSIT 3-A'."""
    query = db.query(User.id).filter(User.status == UserStatus.active)

    if audience == ALL_USERS:
        pass
    elif audience in ROLE_AUDIENCES:
        query = query.filter(User.role == ROLE_AUDIENCES[audience])
    elif audience.startswith("Students - "):
        course_section = audience[len("Students - "):]
        query = (
            query.join(Student, Student.user_id == User.id)
            .join(Program, Student.program_id == Program.id)
            .filter(User.role == UserRole.student, Program.course_section == course_section)
        )
    elif audience.startswith("Instructors - "):
        department = audience[len("Instructors - "):]
        query = query.join(Instructor, Instructor.user_id == User.id).filter(
            User.role == UserRole.instructor, Instructor.department == department
        )
    elif audience.startswith("Alumni - "):
        company = audience[len("Alumni - "):]
        query = query.join(Alumni, Alumni.user_id == User.id).filter(
            User.role == UserRole.alumni, Alumni.company == company
        )
    elif audience.startswith("Employers - "):
        company = audience[len("Employers - "):]
        query = query.join(Employer, Employer.user_id == User.id).filter(
            User.role == UserRole.employer, Employer.company_name == company
        )
    else:
        logger.warning("Unknown target audience %r, nobody assigned", audience)
        return []

    return [user_id for (user_id,) in query.order_by(User.id).all()]


def _set_deployment_window(deployment: FormDeployment, start_at: Optional[datetime], end_at: Optional[datetime]) -> None:
    deployment.start_date = start_at.date() if start_at else None
    deployment.end_date = end_at.date() if end_at else None
    deployment.start_time = start_at.time() if start_at else None
    deployment.end_time = end_at.time() if end_at else None


def _combine(day: Optional[date], at: Optional[time], default: time) -> Optional[datetime]:
    if day is None:
        return None
    return datetime.combine(day, at or default)


def deploy_form(db: Session, form_id: int, user_id: int, data: DeployRequest) -> Dict:
    """Activate a form and rebuild its assignment set from scratch."""
    form = _get_owned_form(db, form_id, user_id)

    audience = data.audience()
    if not data.user_ids and not audience:
        _bad_request(["Either userIds or targetFilters is required"])

    start_at = _combine(data.start_date, data.start_time, time.min) or form.start_date
    end_at = _combine(data.end_date, data.end_time, END_OF_DAY) or form.end_date
    errors = _window_errors(start_at, end_at)
    if errors:
        _bad_request(errors)

    try:
        form.status = FormStatus.active
        form.start_date = start_at
        form.end_date = end_at
        form.updated_at = datetime.utcnow()

        db.query(FormAssignment).filter(FormAssignment.form_id == form.id).delete(synchronize_session=False)

        if data.user_ids:
            found = db.query(User.id).filter(User.id.in_(set(data.user_ids))).all()
            user_ids = sorted(uid for (uid,) in found)
            target_filters = {"user_ids": user_ids}
        else:
            user_ids = resolve_target_audience(db, audience)
            target_filters = data.target_filters or {"target_audience": audience}

        now = datetime.utcnow()
        db.add_all([FormAssignment(form_id=form.id, user_id=uid, assigned_at=now) for uid in user_ids])

        deployment = form.deployment
        if deployment is None:
            deployment = FormDeployment()
            form.deployment = deployment
        deployment.deployed_by = user_id
        _set_deployment_window(deployment, start_at, end_at)
        deployment.target_filters = target_filters
        deployment.deployment_status = "active"
        deployment.deployed_at = now

        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Deploy form %s failed: %s", form_id, e)
        raise HTTPException(status_code=fastapi_status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to deploy form")

    logger.info("Form %s deployed by user %s to %d users", form_id, user_id, len(user_ids))
    return {"form_id": form.id, "assigned_count": len(user_ids)}


def assign_form_to_users(db: Session, form_id: int, user_id: int, data: DeployRequest) -> Dict:
    """Add users to a form's assignment set; existing assignments and the form status are kept."""
    form = _get_owned_form(db, form_id, user_id)

    audience = data.audience()
    if not data.user_ids and not audience:
        _bad_request(["Either userIds or targetFilters is required"])

    start_at = _combine(data.start_date, data.start_time, time.min) or form.start_date
    end_at = _combine(data.end_date, data.end_time, END_OF_DAY) or form.end_date
    errors = _window_errors(start_at, end_at)
    if errors:
        _bad_request(errors)

    if data.user_ids:
        found = db.query(User.id).filter(User.id.in_(set(data.user_ids))).all()
        candidates = sorted(uid for (uid,) in found)
        target_filters = {"target_audience": audience, "user_ids": candidates}
    else:
        candidates = resolve_target_audience(db, audience)
        target_filters = data.target_filters or {"target_audience": audience}

    already = {
        uid for (uid,) in db.query(FormAssignment.user_id).filter(FormAssignment.form_id == form.id).all()
    }
    new_ids = [uid for uid in candidates if uid not in already]

    try:
        now = datetime.utcnow()
        db.add_all([FormAssignment(form_id=form.id, user_id=uid, assigned_at=now) for uid in new_ids])

        deployment = form.deployment
        if deployment is None:
            deployment = FormDeployment(deployed_by=user_id)
            form.deployment = deployment
        _set_deployment_window(deployment, start_at, end_at)
        deployment.target_filters = target_filters
        deployment.deployment_status = "active"

        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Assign form %s failed: %s", form_id, e)
        raise HTTPException(
            status_code=fastapi_status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to assign form to users"
        )

    logger.info("Form %s assigned to %d more users by user %s", form_id, len(new_ids), user_id)
    return {"form_id": form.id, "assigned_count": len(new_ids)}


# == Categories

def list_categories(db: Session) -> List[Dict]:
    categories = db.query(FormCategory).order_by(FormCategory.name.asc()).all()
    return [{"id": c.id, "name": c.name, "description": c.description} for c in categories]


def add_category(db: Session, name: str, description: Optional[str] = None) -> Dict:
    name = name.strip()
    if not name:
        _bad_request(["Category name is required"])
    if db.query(FormCategory).filter(FormCategory.name == name).first():
        _bad_request(["Category already exists"])

    category = FormCategory(name=name, description=description)
    db.add(category)
    db.commit()
    db.refresh(category)
    return {"id": category.id, "name": category.name, "description": category.description}


def delete_category(db: Session, category_id: int) -> None:
    category = db.query(FormCategory).filter(FormCategory.id == category_id).first()
    if not category:
        raise HTTPException(status_code=fastapi_status.HTTP_404_NOT_FOUND, detail="Category not found")
    db.delete(category)
    db.commit()
