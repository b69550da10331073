from __future__ import annotations

import logging

from sqlalchemy import Engine, select
from sqlalchemy.orm import Session

from assethub.db.base import Base
from assethub.db.session import engine as default_engine
from assethub.models.assets import Category, CategoryType
from assethub.models.audit import AuditEntry  # noqa: F401  (register table)
from assethub.models.security import Role, User
from assethub.security.tokens import hash_password
from assethub.settings import Settings, get_settings

logger = logging.getLogger(__name__)

DEFAULT_DEPARTMENTS = (
    ("Digital", "Digital content team"),
    ("Sales", "Sales department"),
    ("Marketing", "Marketing department"),
)


def init_db(engine: Engine | None = None, settings: Settings | None = None) -> None:
    """
    Create tables + seed the department taxonomy and an optional admin user.

    The admin user is created only when ASSETHUB_SEED_ADMIN_EMAIL and
    ASSETHUB_SEED_ADMIN_PASSWORD are both set.
    """

    bind = engine or default_engine
    settings = settings or get_settings()

    Base.metadata.create_all(bind=bind)

    with Session(bind=bind) as db:
        if not _has_departments(db):
            _seed_departments(db)
        _seed_admin(db, settings)
        db.commit()


def _has_departments(db: Session) -> bool:
    stmt = select(Category.id).where(Category.type == CategoryType.DEPARTMENT.value).limit(1)
    return db.execute(stmt).first() is not None


def _seed_departments(db: Session) -> None:
    db.add_all(
        [
            Category(type=CategoryType.DEPARTMENT.value, name=name, description=description)
            for name, description in DEFAULT_DEPARTMENTS
        ]
    )
    logger.info("Seeded %d departments", len(DEFAULT_DEPARTMENTS))


def _seed_admin(db: Session, settings: Settings) -> None:
    if not settings.seed_admin_email or not settings.seed_admin_password:
        return

    email = settings.seed_admin_email.strip().lower()
    if db.execute(select(User.id).where(User.email == email)).first() is not None:
        return

    db.add(
        User(
            email=email,
            first_name="Admin",
            last_name="",
            password_hash=hash_password(settings.seed_admin_password),
            role=Role.ADMIN.value,
            department=None,
            is_active=True,
        )
    )
    logger.info("Seeded admin user email=%s", email)
