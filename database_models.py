"""
SQLAlchemy ORM tables backing the relational entity store.
"""
from sqlalchemy import (
    Boolean, Column, Date, DateTime, Float, ForeignKey, Integer, JSON, String, Text, UniqueConstraint,
)
from sqlalchemy.orm import relationship

from database import Base
from models.fitness import utcnow


class User(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True, index=True)
    username = Column(String, unique=True, nullable=False, index=True)
    email = Column(String, unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False, default="")
    subscription = Column(String, nullable=False, default="debutant")
    is_admin = Column(Boolean, nullable=False, default=False)
    account_status = Column(String, nullable=False, default="active")
    disabled_reason = Column(String, nullable=True)
    suspended_until = Column(Date, nullable=True)
    suspension_reason = Column(Text, nullable=True)
    assigned_program_id = Column(String, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)


class Course(Base):
    __tablename__ = "courses"

    id = Column(String, primary_key=True, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False, default="")
    video_url = Column(String, nullable=False, default="")
    level = Column(String, nullable=False)
    category = Column(String, nullable=False, default="")
    duration = Column(Integer, nullable=False, default=30)
    instructor = Column(String, nullable=False, default="")
    thumbnail = Column(String, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)


class UserCourseAccess(Base):
    """One row per (user, course) pair at most; no row means no override."""
    __tablename__ = "user_course_access"
    __table_args__ = (UniqueConstraint("user_id", "course_id", name="uq_user_course_access"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String, nullable=False, index=True)
    course_id = Column(String, nullable=False, index=True)
    has_access = Column(Boolean, nullable=False, default=False)
    override_subscription = Column(Boolean, nullable=False, default=False)
    reason = Column(Text, nullable=True)
    granted_at = Column(DateTime, nullable=True)
    revoked_at = Column(DateTime, nullable=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)


class SubscriptionPlan(Base):
    __tablename__ = "subscription_plans"

    id = Column(String, primary_key=True, index=True)
    name = Column(String, nullable=False)
    level = Column(String, nullable=False)
    monthly_price = Column(Float, nullable=False)
    annual_price = Column(Float, nullable=False)
    features = Column(JSON, nullable=False, default=list)
    app_access = Column(Boolean, nullable=False, default=False)
    is_family = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)


class UserSubscription(Base):
    __tablename__ = "user_subscriptions"

    id = Column(String, primary_key=True, index=True)
    user_id = Column(String, nullable=False, index=True)
    plan_id = Column(String, nullable=False, index=True)
    interval = Column(String, nullable=False)
    app_access = Column(Boolean, nullable=False, default=False)
    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=True)
    next_payment_date = Column(DateTime, nullable=True)
    status = Column(String, nullable=False, default="active")
    overdue_date = Column(DateTime, nullable=True)
    payment_method = Column(String, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)


class Product(Base):
    __tablename__ = "products"

    id = Column(String, primary_key=True, index=True)
    label = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    price = Column(Float, nullable=False)
    image = Column(String, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)


class WeeklyProgram(Base):
    __tablename__ = "weekly_programs"

    id = Column(String, primary_key=True, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    day_schedules = relationship(
        "DaySchedule",
        back_populates="program",
        cascade="all, delete-orphan",
        order_by="DaySchedule.id",
        lazy="selectin",
    )


class DaySchedule(Base):
    __tablename__ = "day_schedules"

    id = Column(Integer, primary_key=True, autoincrement=True)
    program_id = Column(String, ForeignKey("weekly_programs.id", ondelete="CASCADE"), nullable=False, index=True)
    day_of_week = Column(Integer, nullable=False)
    day_name = Column(String, nullable=False)
    is_rest_day = Column(Boolean, nullable=False, default=False)
    rest_description = Column(Text, nullable=True)

    program = relationship("WeeklyProgram", back_populates="day_schedules")
    courses = relationship(
        "ScheduleCourse",
        back_populates="schedule",
        cascade="all, delete-orphan",
        order_by="ScheduleCourse.order_index",
        lazy="selectin",
    )


class ScheduleCourse(Base):
    __tablename__ = "schedule_courses"

    id = Column(Integer, primary_key=True, autoincrement=True)
    schedule_id = Column(Integer, ForeignKey("day_schedules.id", ondelete="CASCADE"), nullable=False, index=True)
    course_id = Column(String, nullable=False)
    order_index = Column(Integer, nullable=False, default=0)

    schedule = relationship("DaySchedule", back_populates="courses")
