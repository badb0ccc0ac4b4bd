"""Seed an empty database with an admin account, a starter program catalog and term settings.

    python -m feedbacts.utils.generate_seed --admin-email admin@feedbacts.local --admin-password 'Admin#123'

Existing rows are left alone, so the script can be re-run safely.
"""
import argparse
import logging

from sqlalchemy.orm import Session

from feedbacts.core.logging import setup_logging
from feedbacts.db import base, database
from feedbacts.models.course import CatalogStatus, Program
from feedbacts.models.form import FormCategory
from feedbacts.models.system_setting import SystemSetting
from feedbacts.models.user import User, UserRole, UserStatus
from feedbacts.services.course_service import course_section_label
from feedbacts.services.security import hash_password
from feedbacts.services.settings_service import (
    CURRENT_ACADEMIC_YEAR,
    CURRENT_SEMESTER,
    DEFAULT_ACADEMIC_YEAR,
    DEFAULT_SEMESTER,
)

logger = logging.getLogger(__name__)

# (department, program_name, program_code, year levels, sections)
PROGRAMS = [
    ("College", "Bachelor of Science in Information Technology", "BSIT", range(1, 5), ("A", "B")),
    ("College", "Bachelor of Science in Computer Science", "BSCS", range(1, 5), ("A",)),
    ("Senior High", "Science, Technology, Engineering and Mathematics", "STEM", range(11, 13), ("A",)),
]

CATEGORIES = [
    ("Course Evaluation", "Student feedback on a subject and its instructor"),
    ("Alumni Survey", "Tracer and career surveys for graduates"),
    ("Employer Feedback", "Employer assessment of graduates"),
]


def seed_admin(db: Session, email: str, password: str, full_name: str = "System Administrator") -> User:
    user = db.query(User).filter(User.email == email).first()
    if user:
        logger.info("Admin %s already exists", email)
        return user

    user = User(
        email=email,
        password_hash=hash_password(password),
        full_name=full_name,
        role=UserRole.admin,
        status=UserStatus.active,
    )
    db.add(user)
    db.commit()
    logger.info("Created admin %s", email)
    return user


def seed_programs(db: Session) -> int:
    created = 0
    for department, name, code, years, sections in PROGRAMS:
        for year in years:
            for section in sections:
                exists = (
                    db.query(Program.id)
                    .filter(
                        Program.department == department,
                        Program.program_code == code,
                        Program.year_level == year,
                        Program.section == section,
                    )
                    .first()
                )
                if exists:
                    continue
                db.add(
                    Program(
                        department=department,
                        program_name=name,
                        program_code=code,
                        year_level=year,
                        section=section,
                        course_section=course_section_label(code, year, section),
                        status=CatalogStatus.active,
                    )
                )
                created += 1
    db.commit()
    logger.info("Created %d programs", created)
    return created


def seed_categories(db: Session) -> int:
    created = 0
    for name, description in CATEGORIES:
        if not db.query(FormCategory.id).filter(FormCategory.name == name).first():
            db.add(FormCategory(name=name, description=description))
            created += 1
    db.commit()
    return created


def seed_settings(db: Session) -> int:
    created = 0
    for key, value in ((CURRENT_SEMESTER, DEFAULT_SEMESTER), (CURRENT_ACADEMIC_YEAR, DEFAULT_ACADEMIC_YEAR)):
        exists = (
            db.query(SystemSetting.id)
            .filter(SystemSetting.setting_key == key, SystemSetting.department.is_(None))
            .first()
        )
        if not exists:
            db.add(SystemSetting(setting_key=key, setting_value=value))
            created += 1
    db.commit()
    return created


def main(argv=None):
    parser = argparse.ArgumentParser(description="Seed the FeedbACTS database")
    parser.add_argument("--admin-email", default="admin@feedbacts.local")
    parser.add_argument("--admin-password", default="Admin#123")
    args = parser.parse_args(argv)

    setup_logging()
    base.Base.metadata.create_all(bind=database.engine)

    db = database.SessionLocal()
    try:
        seed_admin(db, args.admin_email.lower(), args.admin_password)
        seed_programs(db)
        seed_categories(db)
        seed_settings(db)
    finally:
        db.close()


if __name__ == "__main__":
    main()
