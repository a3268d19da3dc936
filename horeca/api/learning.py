"""Learning API: courses, lessons, quizzes, assignments and learner progress."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select, delete, func, or_, exists
from sqlalchemy.ext.asyncio import AsyncSession

from horeca.db import crud
from horeca.db.engine import get_db
from horeca.dependencies import require_auth
from horeca.models import Assignment, Attempt, Course, Lesson, Progress, Quiz, QuizAnswer, QuizQuestion
from horeca.models.learning import PROGRESS_STATUSES
from horeca.schemas import (
    AnswerRead, AssigneeRead, AssignRequest, AttemptRequest,
    CourseCreate, CourseRead, CourseUpdate,
    LessonCreate, LessonRead, LessonUpdate,
    QuestionRead, QuizCreate, QuizRead,
)
from horeca.services import learning
from horeca.services.acl import can_author, check_sandbox_limits, get_user_role_names, is_sandbox
from horeca.services.auth import AuthContext

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/learning", tags=["learning"])


# ── Access helpers ────────────────────────────────────────

def _is_author(auth: AuthContext, course: Course) -> bool:
    """Course owner, or an author-ranked member of the course's organization."""
    if course.owner_id == auth.user_id:
        return True
    return course.tenant_id is not None and can_author(auth.role)


async def _role_names(db: AsyncSession, auth: AuthContext) -> list[str]:
    return await get_user_role_names(db, auth.user_id, auth.tenant_id)


async def _visible_course(db: AsyncSession, course_id: str, auth: AuthContext) -> Course:
    course = await db.get(Course, course_id)
    if not course or course.tenant_id != auth.tenant_id:
        raise HTTPException(404, "Course not found")
    if course.tenant_id is None and course.owner_id != auth.user_id:
        # Sandbox courses are private to their owner and assignees
        assignment = await learning.find_assignment(db, course.id, auth.user_id, None, [])
        if not assignment:
            raise HTTPException(404, "Course not found")
    return course


async def _authored_course(db: AsyncSession, course_id: str, auth: AuthContext) -> Course:
    course = await _visible_course(db, course_id, auth)
    if not _is_author(auth, course):
        raise HTTPException(403, "No rights to edit this course")
    return course


async def _require_assignment(db: AsyncSession, course: Course, auth: AuthContext) -> None:
    assignment = await learning.find_assignment(
        db, course.id, auth.user_id, auth.tenant_id, await _role_names(db, auth),
    )
    if not assignment:
        raise HTTPException(403, "Course is not assigned to you")


async def _enforce_sandbox(db: AsyncSession, auth: AuthContext, action: str, course_id: str | None = None) -> None:
    if not is_sandbox(auth.tenant_id):
        return
    allowed, message = await check_sandbox_limits(db, auth.user_id, action, course_id)
    if not allowed:
        raise HTTPException(403, message)


async def _quiz_for_course(db: AsyncSession, course_id: str) -> Quiz | None:
    result = await db.execute(select(Quiz).where(Quiz.course_id == course_id))
    return result.scalars().first()


# ── Serialization ─────────────────────────────────────────

def _course_out(course: Course, quiz_id: str | None = None, can_edit: bool = False) -> dict:
    data = CourseRead.model_validate(course).model_dump(by_alias=True, mode="json")
    data["lessonCount"] = len(course.lessons)
    data["quizId"] = quiz_id
    data["canEdit"] = can_edit
    return data


def _lesson_out(lesson: Lesson) -> dict:
    return LessonRead.model_validate(lesson).model_dump(by_alias=True, mode="json")


def _quiz_out(quiz: Quiz, reveal: bool) -> dict:
    return QuizRead(
        id=quiz.id,
        course_id=quiz.course_id,
        title=quiz.title,
        questions=[
            QuestionRead(
                id=q.id,
                text=q.text,
                kind=q.kind,
                order=q.order,
                answers=[
                    AnswerRead(id=a.id, text=a.text, is_correct=a.is_correct if reveal else None)
                    for a in q.answers
                ],
            )
            for q in quiz.questions
        ],
    ).model_dump(by_alias=True, mode="json", exclude_none=not reveal)


# ── Courses ───────────────────────────────────────────────

@router.get("/courses")
async def list_courses(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    if auth.tenant_id:
        where = Course.tenant_id == auth.tenant_id
    else:
        assigned = exists().where(Assignment.course_id == Course.id, Assignment.user_id == auth.user_id)
        where = Course.tenant_id.is_(None) & or_(Course.owner_id == auth.user_id, assigned)

    total = await db.scalar(select(func.count(Course.id)).where(where))
    result = await db.execute(
        select(Course).where(where)
        .order_by(Course.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    courses = list(result.scalars().all())

    quiz_ids: dict[str, str] = {}
    if courses:
        rows = await db.execute(
            select(Quiz.course_id, Quiz.id).where(Quiz.course_id.in_([c.id for c in courses]))
        )
        quiz_ids = {course_id: quiz_id for course_id, quiz_id in rows.all()}

    return {
        "courses": [_course_out(c, quiz_ids.get(c.id), _is_author(auth, c)) for c in courses],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "pages": (total + limit - 1) // limit,
        },
    }


@router.post("/courses", status_code=201)
async def create_course(
    body: CourseCreate,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    if not (can_author(auth.role) or is_sandbox(auth.tenant_id)):
        raise HTTPException(403, "No rights to create courses")
    await _enforce_sandbox(db, auth, "course")

    course = Course(
        tenant_id=auth.tenant_id,
        owner_id=auth.user_id,
        title=body.title,
        description=body.description,
    )
    db.add(course)
    await db.commit()
    await db.refresh(course)
    logger.info(f"Course {course.id} created by {auth.user_id}")
    return {"course": _course_out(course, None, True)}


@router.get("/courses/{course_id}")
async def get_course(
    course_id: str,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    course = await _visible_course(db, course_id, auth)
    quiz = await _quiz_for_course(db, course.id)
    data = _course_out(course, quiz.id if quiz else None, _is_author(auth, course))
    data["lessons"] = [_lesson_out(lesson) for lesson in course.lessons]
    return {"course": data}


@router.put("/courses/{course_id}")
async def update_course(
    course_id: str,
    body: CourseUpdate,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    course = await _authored_course(db, course_id, auth)
    if body.title is not None:
        course.title = body.title
    if body.description is not None:
        course.description = body.description
    await db.commit()
    await db.refresh(course)
    quiz = await _quiz_for_course(db, course.id)
    return {"course": _course_out(course, quiz.id if quiz else None, True)}


@router.delete("/courses/{course_id}")
async def delete_course(
    course_id: str,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    course = await _authored_course(db, course_id, auth)

    quiz = await _quiz_for_course(db, course.id)
    if quiz:
        await db.execute(delete(Attempt).where(Attempt.quiz_id == quiz.id))
        await db.delete(quiz)
    await db.execute(delete(Assignment).where(Assignment.course_id == course.id))
    await db.execute(delete(Progress).where(Progress.course_id == course.id))
    await db.delete(course)
    await db.commit()
    logger.info(f"Course {course_id} deleted by {auth.user_id}")
    return {"ok": True}


# ── Lessons ───────────────────────────────────────────────

@router.get("/courses/{course_id}/lessons")
async def list_lessons(
    course_id: str,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    course = await _visible_course(db, course_id, auth)
    return {"lessons": [_lesson_out(lesson) for lesson in course.lessons]}


@router.post("/courses/{course_id}/lessons", status_code=201)
async def create_lesson(
    course_id: str,
    body: LessonCreate,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    course = await _authored_course(db, course_id, auth)
    await _enforce_sandbox(db, auth, "lesson", course.id)

    lesson = Lesson(
        course_id=course.id,
        title=body.title,
        content=body.content,
        order=body.order or await learning.next_lesson_order(db, course.id),
    )
    db.add(lesson)
    await db.commit()
    await db.refresh(lesson)
    return {"lesson": _lesson_out(lesson)}


@router.get("/lessons/{lesson_id}")
async def get_lesson(
    lesson_id: str,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    lesson = await db.get(Lesson, lesson_id)
    if not lesson:
        raise HTTPException(404, "Lesson not found")
    course = await _visible_course(db, lesson.course_id, auth)

    data = _lesson_out(lesson)
    data["courseTitle"] = course.title
    data["totalLessons"] = len(course.lessons)
    return {"lesson": data}


@router.patch("/lessons/{lesson_id}")
async def update_lesson(
    lesson_id: str,
    body: LessonUpdate,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    lesson = await db.get(Lesson, lesson_id)
    if not lesson:
        raise HTTPException(404, "Lesson not found")
    await _authored_course(db, lesson.course_id, auth)

    for key, value in body.model_dump(exclude_unset=True).items():
        if key == "content" or value is not None:
            setattr(lesson, key, value)
    await db.commit()
    await db.refresh(lesson)
    return {"lesson": _lesson_out(lesson)}


@router.post("/lessons/{lesson_id}/complete")
async def complete_lesson(
    lesson_id: str,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    lesson = await db.get(Lesson, lesson_id)
    if not lesson:
        raise HTTPException(404, "Lesson not found")
    course = await _visible_course(db, lesson.course_id, auth)
    await _require_assignment(db, course, auth)

    progress, done = await learning.complete_lesson(db, lesson, auth.user_id)
    return {
        "progress": {
            "status": progress.status,
            "lessonsDone": progress.lessons_done,
            "score": progress.score,
        },
        "courseCompleted": done,
    }


# ── Quizzes ───────────────────────────────────────────────

@router.get("/courses/{course_id}/quiz")
async def get_course_quiz(
    course_id: str,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    course = await _visible_course(db, course_id, auth)
    quiz = await _quiz_for_course(db, course.id)
    if not quiz:
        raise HTTPException(404, "Quiz not found")
    return {"quiz": _quiz_out(quiz, reveal=_is_author(auth, course))}


@router.post("/courses/{course_id}/quiz", status_code=201)
async def create_quiz(
    course_id: str,
    body: QuizCreate,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    course = await _authored_course(db, course_id, auth)
    if await _quiz_for_course(db, course.id):
        raise HTTPException(400, "Course already has a quiz")
    await _enforce_sandbox(db, auth, "quiz", course.id)

    quiz = Quiz(
        course_id=course.id,
        title=body.title,
        questions=[
            QuizQuestion(
                text=q.text,
                kind=q.kind,
                order=qi,
                answers=[
                    QuizAnswer(text=a.text, is_correct=a.is_correct, order=ai)
                    for ai, a in enumerate(q.answers)
                ],
            )
            for qi, q in enumerate(body.questions)
        ],
    )
    db.add(quiz)
    await db.commit()
    logger.info(f"Quiz {quiz.id} with {len(body.questions)} questions created for course {course.id}")
    return {"quiz": _quiz_out(quiz, reveal=True)}


@router.get("/quiz/{quiz_id}")
async def get_quiz(
    quiz_id: str,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    quiz = await db.get(Quiz, quiz_id)
    if not quiz:
        raise HTTPException(404, "Quiz not found")
    course = await _visible_course(db, quiz.course_id, auth)
    return {"quiz": _quiz_out(quiz, reveal=_is_author(auth, course))}


@router.post("/quiz/{quiz_id}/attempt")
async def submit_attempt(
    quiz_id: str,
    body: AttemptRequest,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    quiz = await db.get(Quiz, quiz_id)
    if not quiz:
        raise HTTPException(404, "Quiz not found")
    course = await _visible_course(db, quiz.course_id, auth)
    await _require_assignment(db, course, auth)

    attempt, progress, grade = await learning.record_attempt(db, quiz, auth.user_id, body.answers)
    return {
        "attempt": {"id": attempt.id, "score": attempt.score, "createdAt": attempt.created_at.isoformat()},
        "score": grade.score,
        "correctCount": grade.correct_count,
        "total": grade.total,
        "results": [
            {"questionId": r.question_id, "selected": r.selected, "correct": r.correct, "isCorrect": r.is_correct}
            for r in grade.questions
        ],
        "progress": {"status": progress.status, "lessonsDone": progress.lessons_done, "score": progress.score},
    }


# ── Assignments ───────────────────────────────────────────

@router.post("/courses/{course_id}/assign", status_code=201)
async def assign_course(
    course_id: str,
    body: AssignRequest,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    course = await _authored_course(db, course_id, auth)

    if body.user_id:
        target = await crud.get_user(db, body.user_id)
        if not target or (course.tenant_id is not None and target.tenant_id != course.tenant_id):
            raise HTTPException(404, "User not found")
        duplicate = Assignment.user_id == body.user_id
    else:
        if not await crud.get_tenant_role_by_name(db, body.role_name, course.tenant_id):
            raise HTTPException(404, "Role not found")
        duplicate = Assignment.role_name == body.role_name

    existing = await db.execute(select(Assignment.id).where(Assignment.course_id == course.id, duplicate))
    if existing.scalars().first():
        raise HTTPException(400, "Course is already assigned")
    await _enforce_sandbox(db, auth, "assignment", course.id)

    assignment = Assignment(
        course_id=course.id,
        tenant_id=course.tenant_id,
        user_id=body.user_id,
        role_name=body.role_name,
        assigned_by=auth.user_id,
    )
    db.add(assignment)
    await db.commit()
    await db.refresh(assignment)
    return {"assignment": {"id": assignment.id, "userId": assignment.user_id, "roleName": assignment.role_name}}


@router.get("/courses/{course_id}/assignees")
async def list_assignees(
    course_id: str,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    course = await _authored_course(db, course_id, auth)
    result = await db.execute(
        select(Assignment).where(Assignment.course_id == course.id).order_by(Assignment.created_at)
    )
    return {
        "assignees": [
            AssigneeRead(
                id=a.id,
                user_id=a.user_id,
                user_name=a.user.name if a.user else None,
                user_email=a.user.email if a.user else None,
                role_name=a.role_name,
                assigned_by=a.assigned_by,
                created_at=a.created_at,
            ).model_dump(by_alias=True, mode="json")
            for a in result.scalars().all()
        ]
    }


# ── Progress ──────────────────────────────────────────────

@router.get("/progress/my")
async def my_progress(
    status: str | None = Query(default=None),
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    if status and status not in PROGRESS_STATUSES:
        raise HTTPException(400, f"Unknown status: {status}")
    return await learning.my_courses(db, auth.user_id, auth.tenant_id, await _role_names(db, auth), status)
