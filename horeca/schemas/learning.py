from __future__ import annotations

import datetime as dt
from typing import Any, Literal

from pydantic import Field, model_validator

from horeca.schemas.common import CamelModel


class CourseCreate(CamelModel):
    title: str = Field(min_length=1, max_length=255)
    description: str = ""


class CourseUpdate(CamelModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None


class CourseRead(CamelModel):
    id: str
    title: str
    description: str
    owner_id: str
    tenant_id: str | None = None
    created_at: dt.datetime


class LessonCreate(CamelModel):
    title: str = Field(min_length=1, max_length=255)
    content: Any = None
    order: int | None = Field(default=None, ge=1)


class LessonUpdate(CamelModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    content: Any = None
    order: int | None = Field(default=None, ge=1)


class LessonRead(CamelModel):
    id: str
    course_id: str
    title: str
    content: Any = None
    order: int


class AnswerCreate(CamelModel):
    text: str = Field(min_length=1)
    is_correct: bool = False


class QuestionCreate(CamelModel):
    text: str = Field(min_length=1)
    kind: Literal["single", "multiple"] = "single"
    answers: list[AnswerCreate] = Field(min_length=2)

    @model_validator(mode="after")
    def _has_correct_answer(self):
        correct = sum(1 for a in self.answers if a.is_correct)
        if correct == 0:
            raise ValueError("Each question needs at least one correct answer")
        if self.kind == "single" and correct != 1:
            raise ValueError("A single-choice question needs exactly one correct answer")
        return self


class QuizCreate(CamelModel):
    title: str = Field(min_length=1, max_length=255)
    questions: list[QuestionCreate] = Field(min_length=1)


class AssignRequest(CamelModel):
    user_id: str | None = None
    role_name: str | None = None

    @model_validator(mode="after")
    def _one_target(self):
        if bool(self.user_id) == bool(self.role_name):
            raise ValueError("Provide exactly one of userId or roleName")
        return self


class AttemptRequest(CamelModel):
    # question id -> chosen answer ids
    answers: dict[str, list[str]]


class AnswerRead(CamelModel):
    id: str
    text: str
    is_correct: bool | None = None


class QuestionRead(CamelModel):
    id: str
    text: str
    kind: str
    order: int
    answers: list[AnswerRead] = []


class QuizRead(CamelModel):
    id: str
    course_id: str
    title: str
    questions: list[QuestionRead] = []


class AssigneeRead(CamelModel):
    id: str
    user_id: str | None = None
    user_name: str | None = None
    user_email: str | None = None
    role_name: str | None = None
    assigned_by: str
    created_at: dt.datetime
