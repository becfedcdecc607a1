"""
Table access for the hosted backend's database and an in-memory test implementation.
"""

from __future__ import annotations

import logging
import time
import uuid
from contextlib import contextmanager
from dataclasses import asdict, dataclass, field, replace
from typing import Dict, Iterator, Optional, Protocol

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Float,
    Integer,
    String,
    Text,
    create_engine,
    func,
    select,
    text,
)
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from portfolio.errors import BackendError, InputError
from shared.types import PlanInterval, SubscriptionStatus, UserRole, UserStatus

logger = logging.getLogger(__name__)

DATABASE_UNAVAILABLE = "The database is unavailable"
USERNAME_TAKEN = "Username is already taken"
ALREADY_SUBSCRIBED = "This email is already subscribed to our newsletter"

PROFILE_FIELDS = {"email", "username", "first_name", "last_name", "avatar_url", "role", "status"}
PROJECT_FIELDS = {
    "title",
    "description",
    "long_description",
    "image",
    "tags",
    "category",
    "is_premium",
    "demo_url",
    "repo_url",
    "features",
}
PLAN_FIELDS = {"name", "description", "price", "interval", "features", "is_popular"}


def _new_id() -> str:
    return uuid.uuid4().hex


def _check_fields(fields: dict, allowed: set[str]) -> None:
    unknown = set(fields) - allowed
    if unknown:
        raise ValueError(f"Unknown fields: {', '.join(sorted(unknown))}")


@dataclass
class ProfileRecord:
    id: str
    email: str
    username: str
    first_name: str = ""
    last_name: str = ""
    avatar_url: Optional[str] = None
    role: UserRole = UserRole.USER
    status: UserStatus = UserStatus.ACTIVE
    created_at: float = field(default_factory=lambda: time.time())
    updated_at: float = field(default_factory=lambda: time.time())

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def display_name(self) -> str:
        full_name = f"{self.first_name} {self.last_name}".strip()
        return full_name or self.username

    def as_dict(self) -> dict:
        data = asdict(self)
        data["role"] = UserRole(self.role).value
        data["status"] = UserStatus(self.status).value
        return data


@dataclass
class ProjectRecord:
    title: str
    description: str
    category: str
    long_description: str = ""
    image: str = ""
    tags: list[str] = field(default_factory=list)
    is_premium: bool = False
    demo_url: Optional[str] = None
    repo_url: Optional[str] = None
    features: list[str] = field(default_factory=list)
    downloads: int = 0
    id: str = field(default_factory=_new_id)
    created_at: float = field(default_factory=lambda: time.time())

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass
class PlanRecord:
    name: str
    description: str
    price: float
    interval: PlanInterval = PlanInterval.MONTH
    features: list[str] = field(default_factory=list)
    is_popular: bool = False
    id: str = field(default_factory=_new_id)

    @property
    def is_free(self) -> bool:
        return self.price <= 0

    def as_dict(self) -> dict:
        data = asdict(self)
        data["interval"] = PlanInterval(self.interval).value
        return data


@dataclass
class SubscriptionRecord:
    user_id: str
    plan_id: str
    current_period_end: float
    status: SubscriptionStatus = SubscriptionStatus.ACTIVE
    id: str = field(default_factory=_new_id)
    started_at: float = field(default_factory=lambda: time.time())
    cancelled_at: Optional[float] = None

    @property
    def is_active(self) -> bool:
        return self.status == SubscriptionStatus.ACTIVE

    def as_dict(self) -> dict:
        data = asdict(self)
        data["status"] = SubscriptionStatus(self.status).value
        return data


@dataclass
class ContactMessageRecord:
    name: str
    email: str
    subject: str
    message: str
    id: str = field(default_factory=_new_id)
    created_at: float = field(default_factory=lambda: time.time())

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass
class SubscriberRecord:
    email: str
    id: str = field(default_factory=_new_id)
    created_at: float = field(default_factory=lambda: time.time())


class DbClient(Protocol):
    """Interface for the backend's tables."""

    def ping(self) -> bool:
        ...

    def create_profile(self, profile: ProfileRecord) -> ProfileRecord:
        ...

    def get_profile(self, user_id: str) -> Optional[ProfileRecord]:
        ...

    def get_profile_by_username(self, username: str) -> Optional[ProfileRecord]:
        ...

    def update_profile(self, user_id: str, **fields) -> Optional[ProfileRecord]:
        ...

    def list_profiles(self) -> list[ProfileRecord]:
        ...

    def delete_profile(self, user_id: str) -> bool:
        ...

    def list_projects(self) -> list[ProjectRecord]:
        ...

    def get_project(self, project_id: str) -> Optional[ProjectRecord]:
        ...

    def create_project(self, project: ProjectRecord) -> ProjectRecord:
        ...

    def update_project(self, project_id: str, **fields) -> Optional[ProjectRecord]:
        ...

    def delete_project(self, project_id: str) -> bool:
        ...

    def increment_downloads(self, project_id: str) -> None:
        ...

    def list_plans(self) -> list[PlanRecord]:
        ...

    def get_plan(self, plan_id: str) -> Optional[PlanRecord]:
        ...

    def create_plan(self, plan: PlanRecord) -> PlanRecord:
        ...

    def update_plan(self, plan_id: str, **fields) -> Optional[PlanRecord]:
        ...

    def delete_plan(self, plan_id: str) -> bool:
        ...

    def create_subscription(
        self, user_id: str, plan_id: str, current_period_end: float
    ) -> SubscriptionRecord:
        ...

    def get_active_subscription(self, user_id: str) -> Optional[SubscriptionRecord]:
        ...

    def cancel_subscription(self, subscription_id: str) -> None:
        ...

    def list_subscriptions(
        self, status: Optional[SubscriptionStatus] = None
    ) -> list[SubscriptionRecord]:
        ...

    def save_contact_message(self, message: ContactMessageRecord) -> None:
        ...

    def list_contact_messages(self, limit: int = 100) -> list[ContactMessageRecord]:
        ...

    def count_contact_messages(self) -> int:
        ...

    def get_subscriber(self, email: str) -> Optional[SubscriberRecord]:
        ...

    def add_subscriber(self, email: str) -> SubscriberRecord:
        ...

    def count_subscribers(self) -> int:
        ...


class InMemoryDbClient:
    """Simple in-memory database for development and tests."""

    def __init__(self):
        self.profiles: Dict[str, ProfileRecord] = {}
        self.projects: Dict[str, ProjectRecord] = {}
        self.plans: Dict[str, PlanRecord] = {}
        self.subscriptions: Dict[str, SubscriptionRecord] = {}
        self.messages: list[ContactMessageRecord] = []
        self.subscribers: Dict[str, SubscriberRecord] = {}

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        self.profiles.clear()
        self.projects.clear()
        self.plans.clear()
        self.subscriptions.clear()
        self.messages.clear()
        self.subscribers.clear()

    def ping(self) -> bool:
        return True

    def _username_owner(self, username: str) -> Optional[ProfileRecord]:
        wanted = username.lower()
        for profile in self.profiles.values():
            if profile.username.lower() == wanted:
                return profile
        return None

    def create_profile(self, profile: ProfileRecord) -> ProfileRecord:
        owner = self._username_owner(profile.username)
        if owner and owner.id != profile.id:
            raise InputError(USERNAME_TAKEN, field="username")
        self.profiles[profile.id] = profile
        return profile

    def get_profile(self, user_id: str) -> Optional[ProfileRecord]:
        return self.profiles.get(user_id)

    def get_profile_by_username(self, username: str) -> Optional[ProfileRecord]:
        return self._username_owner(username)

    def update_profile(self, user_id: str, **fields) -> Optional[ProfileRecord]:
        _check_fields(fields, PROFILE_FIELDS)
        profile = self.profiles.get(user_id)
        if not profile:
            return None
        if "username" in fields:
            owner = self._username_owner(fields["username"])
            if owner and owner.id != user_id:
                raise InputError(USERNAME_TAKEN, field="username")
        if "role" in fields:
            fields["role"] = UserRole(fields["role"])
        if "status" in fields:
            fields["status"] = UserStatus(fields["status"])
        updated = replace(profile, **fields, updated_at=time.time())
        self.profiles[user_id] = updated
        return updated

    def list_profiles(self) -> list[ProfileRecord]:
        return sorted(self.profiles.values(), key=lambda p: p.created_at, reverse=True)

    def delete_profile(self, user_id: str) -> bool:
        for sub_id in [s.id for s in self.subscriptions.values() if s.user_id == user_id]:
            del self.subscriptions[sub_id]
        return self.profiles.pop(user_id, None) is not None

    def list_projects(self) -> list[ProjectRecord]:
        return sorted(self.projects.values(), key=lambda p: p.created_at, reverse=True)

    def get_project(self, project_id: str) -> Optional[ProjectRecord]:
        return self.projects.get(project_id)

    def create_project(self, project: ProjectRecord) -> ProjectRecord:
        self.projects[project.id] = project
        return project

    def update_project(self, project_id: str, **fields) -> Optional[ProjectRecord]:
        _check_fields(fields, PROJECT_FIELDS)
        project = self.projects.get(project_id)
        if not project:
            return None
        updated = replace(project, **fields)
        self.projects[project_id] = updated
        return updated

    def delete_project(self, project_id: str) -> bool:
        return self.projects.pop(project_id, None) is not None

    def increment_downloads(self, project_id: str) -> None:
        project = self.projects.get(project_id)
        if project:
            project.downloads += 1

    def list_plans(self) -> list[PlanRecord]:
        return sorted(self.plans.values(), key=lambda p: p.price)

    def get_plan(self, plan_id: str) -> Optional[PlanRecord]:
        return self.plans.get(plan_id)

    def create_plan(self, plan: PlanRecord) -> PlanRecord:
        self.plans[plan.id] = plan
        return plan

    def update_plan(self, plan_id: str, **fields) -> Optional[PlanRecord]:
        _check_fields(fields, PLAN_FIELDS)
        plan = self.plans.get(plan_id)
        if not plan:
            return None
        if "interval" in fields:
            fields["interval"] = PlanInterval(fields["interval"])
        updated = replace(plan, **fields)
        self.plans[plan_id] = updated
        return updated

    def delete_plan(self, plan_id: str) -> bool:
        return self.plans.pop(plan_id, None) is not None

    def create_subscription(
        self, user_id: str, plan_id: str, current_period_end: float
    ) -> SubscriptionRecord:
        record = SubscriptionRecord(
            user_id=user_id, plan_id=plan_id, current_period_end=current_period_end
        )
        self.subscriptions[record.id] = record
        return record

    def get_active_subscription(self, user_id: str) -> Optional[SubscriptionRecord]:
        active = [
            s
            for s in self.subscriptions.values()
            if s.user_id == user_id and s.is_active
        ]
        if not active:
            return None
        return max(active, key=lambda s: s.started_at)

    def cancel_subscription(self, subscription_id: str) -> None:
        record = self.subscriptions.get(subscription_id)
        if record and record.is_active:
            record.status = SubscriptionStatus.CANCELLED
            record.cancelled_at = time.time()

    def list_subscriptions(
        self, status: Optional[SubscriptionStatus] = None
    ) -> list[SubscriptionRecord]:
        records = sorted(
            self.subscriptions.values(), key=lambda s: s.started_at, reverse=True
        )
        if status:
            records = [s for s in records if s.status == status]
        return records

    def save_contact_message(self, message: ContactMessageRecord) -> None:
        self.messages.append(message)

    def list_contact_messages(self, limit: int = 100) -> list[ContactMessageRecord]:
        return sorted(self.messages, key=lambda m: m.created_at, reverse=True)[:limit]

    def count_contact_messages(self) -> int:
        return len(self.messages)

    def get_subscriber(self, email: str) -> Optional[SubscriberRecord]:
        return self.subscribers.get(email.lower())

    def add_subscriber(self, email: str) -> SubscriberRecord:
        key = email.lower()
        if key in self.subscribers:
            raise InputError(ALREADY_SUBSCRIBED, field="email")
        record = SubscriberRecord(email=key)
        self.subscribers[key] = record
        return record

    def count_subscribers(self) -> int:
        return len(self.subscribers)


class SqlDbClient:
    """
    SQLAlchemy-backed implementation. Accepts any SQLAlchemy URL (the backend's
    Postgres in production, SQLite for tests).
    """

    def __init__(self, database_url: str):
        if not database_url:
            raise ValueError("DATABASE_URL is required for SqlDbClient")
        self.engine = create_engine(
            database_url,
            future=True,
            pool_pre_ping=True,
            pool_recycle=1800,
        )
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        Base.metadata.create_all(self.engine)

    @contextmanager
    def _session(self) -> Iterator[Session]:
        try:
            with self.Session() as session:
                yield session
        except SQLAlchemyError as exc:
            logger.error("Database error: %s", exc)
            raise BackendError(DATABASE_UNAVAILABLE) from exc

    def ping(self) -> bool:
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True

    # Profiles

    def _to_profile(self, row: "ProfileRow") -> ProfileRecord:
        return ProfileRecord(
            id=row.id,
            email=row.email,
            username=row.username,
            first_name=row.first_name or "",
            last_name=row.last_name or "",
            avatar_url=row.avatar_url,
            role=UserRole(row.role),
            status=UserStatus(row.status),
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    def _username_owner(self, session: Session, username: str) -> Optional["ProfileRow"]:
        stmt = select(ProfileRow).where(
            func.lower(ProfileRow.username) == username.lower()
        )
        return session.execute(stmt).scalars().first()

    def create_profile(self, profile: ProfileRecord) -> ProfileRecord:
        with self._session() as session:
            owner = self._username_owner(session, profile.username)
            if owner and owner.id != profile.id:
                raise InputError(USERNAME_TAKEN, field="username")
            row = ProfileRow(
                id=profile.id,
                email=profile.email,
                username=profile.username,
                first_name=profile.first_name,
                last_name=profile.last_name,
                avatar_url=profile.avatar_url,
                role=UserRole(profile.role).value,
                status=UserStatus(profile.status).value,
                created_at=profile.created_at,
                updated_at=profile.updated_at,
            )
            session.merge(row)
            try:
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                raise InputError(USERNAME_TAKEN, field="username") from exc
            return profile

    def get_profile(self, user_id: str) -> Optional[ProfileRecord]:
        with self._session() as session:
            row = session.get(ProfileRow, user_id)
            return self._to_profile(row) if row else None

    def get_profile_by_username(self, username: str) -> Optional[ProfileRecord]:
        with self._session() as session:
            row = self._username_owner(session, username)
            return self._to_profile(row) if row else None

    def update_profile(self, user_id: str, **fields) -> Optional[ProfileRecord]:
        _check_fields(fields, PROFILE_FIELDS)
        with self._session() as session:
            row = session.get(ProfileRow, user_id)
            if not row:
                return None
            if "username" in fields:
                owner = self._username_owner(session, fields["username"])
                if owner and owner.id != user_id:
                    raise InputError(USERNAME_TAKEN, field="username")
            for key, value in fields.items():
                if key in ("role", "status"):
                    value = value.value if hasattr(value, "value") else value
                setattr(row, key, value)
            row.updated_at = time.time()
            session.commit()
            session.refresh(row)
            return self._to_profile(row)

    def list_profiles(self) -> list[ProfileRecord]:
        with self._session() as session:
            rows = (
                session.query(ProfileRow).order_by(ProfileRow.created_at.desc()).all()
            )
            return [self._to_profile(row) for row in rows]

    def delete_profile(self, user_id: str) -> bool:
        with self._session() as session:
            row = session.get(ProfileRow, user_id)
            if not row:
                return False
            session.query(SubscriptionRow).filter(
                SubscriptionRow.user_id == user_id
            ).delete(synchronize_session=False)
            session.delete(row)
            session.commit()
            return True

    # Projects

    def _to_project(self, row: "ProjectRow") -> ProjectRecord:
        return ProjectRecord(
            id=row.id,
            title=row.title,
            description=row.description,
            long_description=row.long_description or "",
            image=row.image or "",
            tags=list(row.tags or []),
            category=row.category,
            is_premium=bool(row.is_premium),
            demo_url=row.demo_url,
            repo_url=row.repo_url,
            features=list(row.features or []),
            downloads=row.downloads or 0,
            created_at=row.created_at,
        )

    def list_projects(self) -> list[ProjectRecord]:
        with self._session() as session:
            rows = (
                session.query(ProjectRow).order_by(ProjectRow.created_at.desc()).all()
            )
            return [self._to_project(row) for row in rows]

    def get_project(self, project_id: str) -> Optional[ProjectRecord]:
        with self._session() as session:
            row = session.get(ProjectRow, project_id)
            return self._to_project(row) if row else None

    def create_project(self, project: ProjectRecord) -> ProjectRecord:
        with self._session() as session:
            session.add(ProjectRow(**project.as_dict()))
            session.commit()
            return project

    def update_project(self, project_id: str, **fields) -> Optional[ProjectRecord]:
        _check_fields(fields, PROJECT_FIELDS)
        with self._session() as session:
            row = session.get(ProjectRow, project_id)
            if not row:
                return None
            for key, value in fields.items():
                setattr(row, key, value)
            session.commit()
            session.refresh(row)
            return self._to_project(row)

    def delete_project(self, project_id: str) -> bool:
        with self._session() as session:
            row = session.get(ProjectRow, project_id)
            if not row:
                return False
            session.delete(row)
            session.commit()
            return True

    def increment_downloads(self, project_id: str) -> None:
        with self._session() as session:
            session.query(ProjectRow).filter(ProjectRow.id == project_id).update(
                {ProjectRow.downloads: ProjectRow.downloads + 1},
                synchronize_session=False,
            )
            session.commit()

    # Plans

    def _to_plan(self, row: "PlanRow") -> PlanRecord:
        return PlanRecord(
            id=row.id,
            name=row.name,
            description=row.description or "",
            price=row.price,
            interval=PlanInterval(row.interval),
            features=list(row.features or []),
            is_popular=bool(row.is_popular),
        )

    def list_plans(self) -> list[PlanRecord]:
        with self._session() as session:
            rows = session.query(PlanRow).order_by(PlanRow.price.asc()).all()
            return [self._to_plan(row) for row in rows]

    def get_plan(self, plan_id: str) -> Optional[PlanRecord]:
        with self._session() as session:
            row = session.get(PlanRow, plan_id)
            return self._to_plan(row) if row else None

    def create_plan(self, plan: PlanRecord) -> PlanRecord:
        with self._session() as session:
            session.add(PlanRow(**plan.as_dict()))
            session.commit()
            return plan

    def update_plan(self, plan_id: str, **fields) -> Optional[PlanRecord]:
        _check_fields(fields, PLAN_FIELDS)
        with self._session() as session:
            row = session.get(PlanRow, plan_id)
            if not row:
                return None
            for key, value in fields.items():
                if key == "interval":
                    value = PlanInterval(value).value
                setattr(row, key, value)
            session.commit()
            session.refresh(row)
            return self._to_plan(row)

    def delete_plan(self, plan_id: str) -> bool:
        with self._session() as session:
            row = session.get(PlanRow, plan_id)
            if not row:
                return False
            session.delete(row)
            session.commit()
            return True

    # Subscriptions

    def _to_subscription(self, row: "SubscriptionRow") -> SubscriptionRecord:
        return SubscriptionRecord(
            id=row.id,
            user_id=row.user_id,
            plan_id=row.plan_id,
            status=SubscriptionStatus(row.status),
            started_at=row.started_at,
            current_period_end=row.current_period_end,
            cancelled_at=row.cancelled_at,
        )

    def create_subscription(
        self, user_id: str, plan_id: str, current_period_end: float
    ) -> SubscriptionRecord:
        record = SubscriptionRecord(
            user_id=user_id, plan_id=plan_id, current_period_end=current_period_end
        )
        with self._session() as session:
            session.add(SubscriptionRow(**record.as_dict()))
            session.commit()
        return record

    def get_active_subscription(self, user_id: str) -> Optional[SubscriptionRecord]:
        with self._session() as session:
            stmt = (
                select(SubscriptionRow)
                .where(
                    SubscriptionRow.user_id == user_id,
                    SubscriptionRow.status == SubscriptionStatus.ACTIVE.value,
                )
                .order_by(SubscriptionRow.started_at.desc())
                .limit(1)
            )
            row = session.execute(stmt).scalar_one_or_none()
            return self._to_subscription(row) if row else None

    def cancel_subscription(self, subscription_id: str) -> None:
        with self._session() as session:
            row = session.get(SubscriptionRow, subscription_id)
            if not row or row.status != SubscriptionStatus.ACTIVE.value:
                return
            row.status = SubscriptionStatus.CANCELLED.value
            row.cancelled_at = time.time()
            session.commit()

    def list_subscriptions(
        self, status: Optional[SubscriptionStatus] = None
    ) -> list[SubscriptionRecord]:
        with self._session() as session:
            query = session.query(SubscriptionRow)
            if status:
                query = query.filter(SubscriptionRow.status == status.value)
            rows = query.order_by(SubscriptionRow.started_at.desc()).all()
            return [self._to_subscription(row) for row in rows]

    # Contact messages and newsletter

    def save_contact_message(self, message: ContactMessageRecord) -> None:
        with self._session() as session:
            session.add(ContactMessageRow(**message.as_dict()))
            session.commit()

    def list_contact_messages(self, limit: int = 100) -> list[ContactMessageRecord]:
        with self._session() as session:
            rows = (
                session.query(ContactMessageRow)
                .order_by(ContactMessageRow.created_at.desc())
                .limit(limit)
                .all()
            )
            return [
                ContactMessageRecord(
                    id=row.id,
                    name=row.name,
                    email=row.email,
                    subject=row.subject,
                    message=row.message,
                    created_at=row.created_at,
                )
                for row in rows
            ]

    def count_contact_messages(self) -> int:
        with self._session() as session:
            return session.query(func.count(ContactMessageRow.id)).scalar() or 0

    def get_subscriber(self, email: str) -> Optional[SubscriberRecord]:
        with self._session() as session:
            stmt = select(SubscriberRow).where(SubscriberRow.email == email.lower())
            row = session.execute(stmt).scalar_one_or_none()
            if not row:
                return None
            return SubscriberRecord(id=row.id, email=row.email, created_at=row.created_at)

    def add_subscriber(self, email: str) -> SubscriberRecord:
        record = SubscriberRecord(email=email.lower())
        with self._session() as session:
            session.add(
                SubscriberRow(id=record.id, email=record.email, created_at=record.created_at)
            )
            try:
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                raise InputError(ALREADY_SUBSCRIBED, field="email") from exc
        return record

    def count_subscribers(self) -> int:
        with self._session() as session:
            return session.query(func.count(SubscriberRow.id)).scalar() or 0


Base = declarative_base()


class ProfileRow(Base):
    __tablename__ = "profiles"

    id = Column(String, primary_key=True)
    email = Column(String, nullable=False, index=True)
    username = Column(String, nullable=False, unique=True)
    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)
    avatar_url = Column(Text, nullable=True)
    role = Column(String, nullable=False, default=UserRole.USER.value)
    status = Column(String, nullable=False, default=UserStatus.ACTIVE.value)
    created_at = Column(Float, nullable=False)
    updated_at = Column(Float, nullable=False)


class ProjectRow(Base):
    __tablename__ = "projects"

    id = Column(String, primary_key=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    long_description = Column(Text, nullable=True)
    image = Column(String, nullable=True)
    tags = Column(JSON, nullable=False, default=list)
    category = Column(String, nullable=False, index=True)
    is_premium = Column(Boolean, nullable=False, default=False)
    demo_url = Column(String, nullable=True)
    repo_url = Column(String, nullable=True)
    features = Column(JSON, nullable=False, default=list)
    downloads = Column(Integer, nullable=False, default=0)
    created_at = Column(Float, nullable=False)


class PlanRow(Base):
    __tablename__ = "subscription_plans"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Float, nullable=False)
    interval = Column(String, nullable=False, default=PlanInterval.MONTH.value)
    features = Column(JSON, nullable=False, default=list)
    is_popular = Column(Boolean, nullable=False, default=False)


class SubscriptionRow(Base):
    __tablename__ = "user_subscriptions"

    id = Column(String, primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    plan_id = Column(String, nullable=False)
    status = Column(String, nullable=False, index=True)
    started_at = Column(Float, nullable=False)
    current_period_end = Column(Float, nullable=False)
    cancelled_at = Column(Float, nullable=True)


class ContactMessageRow(Base):
    __tablename__ = "contact_messages"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=False)
    subject = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    created_at = Column(Float, nullable=False)


class SubscriberRow(Base):
    __tablename__ = "subscribers"

    id = Column(String, primary_key=True)
    email = Column(String, nullable=False, unique=True)
    created_at = Column(Float, nullable=False)
