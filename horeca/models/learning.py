"""Learning module: courses, lessons, quizzes, assignments and progress."""

from __future__ import annotations

from sqlalchemy import String, Integer, Text, Boolean, ForeignKey, JSON, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from horeca.models.base import Base, ULIDMixin, TimestampMixin

PROGRESS_STATUSES = ("NOT_STARTED", "IN_PROGRESS", "DONE")


class Course(Base, ULIDMixin, TimestampMixin):
    __tablename__ = "courses"

    # NULL tenant means a sandbox course owned by a user without an organization
    tenant_id: Mapped[str | None] = mapped_column(String(26), ForeignKey("tenants.id"), nullable=True, index=True)
    owner_id: Mapped[str] = mapped_column(String(26), ForeignKey("users.id"))
    title: Mapped[str] = mapped_column(String(255))
    description: Mapped[str] = mapped_column(Text, default="")

    lessons = relationship(
        "Lesson", back_populates="course", lazy="selectin",
        order_by="Lesson.order", cascade="all, delete-orphan",
    )


class Lesson(Base, ULIDMixin, TimestampMixin):
    __tablename__ = "lessons"

    course_id: Mapped[str] = mapped_column(String(26), ForeignKey("courses.id", ondelete="CASCADE"), index=True)
    title: Mapped[str] = mapped_column(String(255))
    content: Mapped[dict | list | None] = mapped_column(JSON, nullable=True)
    order: Mapped[int] = mapped_column(Integer, default=1)

    course = relationship("Course", back_populates="lessons")


class Quiz(Base, ULIDMixin, TimestampMixin):
    __tablename__ = "quizzes"

    course_id: Mapped[str] = mapped_column(String(26), ForeignKey("courses.id", ondelete="CASCADE"), unique=True)
    title: Mapped[str] = mapped_column(String(255))

    questions = relationship(
        "QuizQuestion", back_populates="quiz", lazy="selectin",
        order_by="QuizQuestion.order", cascade="all, delete-orphan",
    )


class QuizQuestion(Base, ULIDMixin):
    __tablename__ = "quiz_questions"

    quiz_id: Mapped[str] = mapped_column(String(26), ForeignKey("quizzes.id", ondelete="CASCADE"), index=True)
    text: Mapped[str] = mapped_column(Text)
    kind: Mapped[str] = mapped_column(String(10), default="single")  # single | multiple
    order: Mapped[int] = mapped_column(Integer, default=0)

    quiz = relationship("Quiz", back_populates="questions")
    answers = relationship(
        "QuizAnswer", back_populates="question", lazy="selectin",
        order_by="QuizAnswer.order", cascade="all, delete-orphan",
    )


class QuizAnswer(Base, ULIDMixin):
    __tablename__ = "quiz_answers"

    question_id: Mapped[str] = mapped_column(String(26), ForeignKey("quiz_questions.id", ondelete="CASCADE"), index=True)
    text: Mapped[str] = mapped_column(Text)
    is_correct: Mapped[bool] = mapped_column(Boolean, default=False)
    order: Mapped[int] = mapped_column(Integer, default=0)

    question = relationship("QuizQuestion", back_populates="answers")


class Assignment(Base, ULIDMixin):
    __tablename__ = "assignments"

    course_id: Mapped[str] = mapped_column(String(26), ForeignKey("courses.id", ondelete="CASCADE"), index=True)
    tenant_id: Mapped[str | None] = mapped_column(String(26), ForeignKey("tenants.id"), nullable=True)
    # Exactly one of user_id / role_name is set
    user_id: Mapped[str | None] = mapped_column(String(26), ForeignKey("users.id"), nullable=True)
    role_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    assigned_by: Mapped[str] = mapped_column(String(26), ForeignKey("users.id"))

    user = relationship("User", foreign_keys=[user_id], lazy="selectin")


class Progress(Base, ULIDMixin, TimestampMixin):
    __tablename__ = "progress"
    __table_args__ = (UniqueConstraint("course_id", "user_id"),)

    course_id: Mapped[str] = mapped_column(String(26), ForeignKey("courses.id", ondelete="CASCADE"), index=True)
    user_id: Mapped[str] = mapped_column(String(26), ForeignKey("users.id"), index=True)
    status: Mapped[str] = mapped_column(String(20), default="NOT_STARTED")
    lessons_done: Mapped[int] = mapped_column(Integer, default=0)
    score: Mapped[int | None] = mapped_column(Integer, nullable=True)


class Attempt(Base, ULIDMixin):
    __tablename__ = "attempts"

    quiz_id: Mapped[str] = mapped_column(String(26), ForeignKey("quizzes.id", ondelete="CASCADE"), index=True)
    user_id: Mapped[str] = mapped_column(String(26), ForeignKey("users.id"), index=True)
    answers: Mapped[dict] = mapped_column(JSON, default=dict)
    score: Mapped[int] = mapped_column(Integer, default=0)
