"""Tests for table creation and seeding."""
from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from assethub.db.init_db import DEFAULT_DEPARTMENTS, init_db
from assethub.models.assets import Category, CategoryType
from assethub.models.security import Role, User
from assethub.security.tokens import verify_password
from assethub.settings import Settings


def _settings(**overrides) -> Settings:
    return Settings(jwt_secret="s" * 32, seed_admin_email=None, seed_admin_password=None, **overrides)


def test_init_db_seeds_departments_once(engine):
    init_db(engine, _settings())
    init_db(engine, _settings())

    with Session(bind=engine) as db:
        names = db.scalars(
            select(Category.name).where(Category.type == CategoryType.DEPARTMENT.value).order_by(Category.name)
        ).all()
    assert names == sorted(name for name, _ in DEFAULT_DEPARTMENTS)


def test_init_db_skips_admin_without_credentials(engine):
    init_db(engine, _settings())

    with Session(bind=engine) as db:
        assert db.scalars(select(User)).all() == []


def test_init_db_seeds_admin_when_configured(engine):
    settings = Settings(jwt_secret="s" * 32, seed_admin_email=" Admin@Example.com ", seed_admin_password="changeme123")
    init_db(engine, settings)
    init_db(engine, settings)

    with Session(bind=engine) as db:
        users = db.scalars(select(User)).all()
    assert len(users) == 1
    assert users[0].email == "admin@example.com"
    assert users[0].role == Role.ADMIN.value
    assert users[0].department is None
    assert verify_password("changeme123", users[0].password_hash)
