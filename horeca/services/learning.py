"""Learning flows: assignment lookup, lesson completion, quiz grading, progress."""

from __future__ import annotations

from dataclasses import dataclass, field

from sqlalchemy import select, or_, and_, func
from sqlalchemy.ext.asyncio import AsyncSession

from horeca.models import Course, Lesson, Quiz, QuizQuestion, Assignment, Progress, Attempt


@dataclass
class QuestionResult:
    question_id: str
    selected: list[str]
    correct: list[str]
    is_correct: bool


@dataclass
class GradeResult:
    score: int
    correct_count: int
    total: int
    questions: list[QuestionResult] = field(default_factory=list)


def is_question_correct(kind: str, selected: list[str], correct: list[str]) -> bool:
    """single: exactly one pick and it is correct. multiple: picks equal the correct set."""
    if kind == "single":
        return len(selected) == 1 and selected[0] in correct
    return len(selected) == len(set(selected)) and set(selected) == set(correct)


def grade_quiz(questions: list[QuizQuestion], answers: dict[str, list[str]]) -> GradeResult:
    results = []
    for q in questions:
        selected = answers.get(q.id, [])
        correct = [a.id for a in q.answers if a.is_correct]
        results.append(QuestionResult(q.id, selected, correct, is_question_correct(q.kind, selected, correct)))

    total = len(results)
    correct_count = sum(1 for r in results if r.is_correct)
    score = round(correct_count / total * 100) if total else 0
    return GradeResult(score=score, correct_count=correct_count, total=total, questions=results)


def _assignment_filter(user_id: str, tenant_id: str | None, role_names: list[str]):
    clauses = [Assignment.user_id == user_id]
    if role_names:
        clauses.append(and_(Assignment.role_name.in_(role_names), Assignment.tenant_id == tenant_id))
    return or_(*clauses)


async def find_assignment(
    db: AsyncSession, course_id: str, user_id: str, tenant_id: str | None, role_names: list[str],
) -> Assignment | None:
    result = await db.execute(
        select(Assignment)
        .where(Assignment.course_id == course_id, _assignment_filter(user_id, tenant_id, role_names))
        .order_by(Assignment.created_at)
    )
    return result.scalars().first()


async def get_or_create_progress(db: AsyncSession, course_id: str, user_id: str) -> Progress:
    result = await db.execute(
        select(Progress).where(Progress.course_id == course_id, Progress.user_id == user_id)
    )
    progress = result.scalars().first()
    if not progress:
        progress = Progress(course_id=course_id, user_id=user_id, status="NOT_STARTED", lessons_done=0)
        db.add(progress)
        await db.flush()
    return progress


async def complete_lesson(db: AsyncSession, lesson: Lesson, user_id: str) -> tuple[Progress, bool]:
    """Mark every lesson up to this one as done. Returns (progress, course_completed)."""
    progress = await get_or_create_progress(db, lesson.course_id, user_id)
    upto = await db.scalar(
        select(func.count(Lesson.id)).where(Lesson.course_id == lesson.course_id, Lesson.order <= lesson.order)
    )
    total = await db.scalar(select(func.count(Lesson.id)).where(Lesson.course_id == lesson.course_id))

    progress.lessons_done = max(progress.lessons_done, upto)
    done = progress.lessons_done >= total
    progress.status = "DONE" if done else "IN_PROGRESS"
    await db.commit()
    await db.refresh(progress)
    return progress, done


async def record_attempt(
    db: AsyncSession, quiz: Quiz, user_id: str, answers: dict[str, list[str]],
) -> tuple[Attempt, Progress, GradeResult]:
    """Grade, store the attempt and raise the best score in one transaction."""
    grade = grade_quiz(list(quiz.questions), answers)

    attempt = Attempt(quiz_id=quiz.id, user_id=user_id, answers=answers, score=grade.score)
    db.add(attempt)

    progress = await get_or_create_progress(db, quiz.course_id, user_id)
    progress.score = max(progress.score or 0, grade.score)
    if progress.status == "NOT_STARTED":
        progress.status = "IN_PROGRESS"

    await db.commit()
    await db.refresh(attempt)
    await db.refresh(progress)
    return attempt, progress, grade


async def next_lesson_order(db: AsyncSession, course_id: str) -> int:
    last = await db.scalar(select(func.max(Lesson.order)).where(Lesson.course_id == course_id))
    return (last or 0) + 1


async def my_courses(
    db: AsyncSession, user_id: str, tenant_id: str | None, role_names: list[str], status: str | None = None,
) -> dict:
    """Assigned courses with progress (created on demand) and the latest attempt."""
    result = await db.execute(
        select(Assignment)
        .where(_assignment_filter(user_id, tenant_id, role_names))
        .order_by(Assignment.created_at)
    )
    course_ids: list[str] = []
    for a in result.scalars().all():
        if a.course_id not in course_ids:
            course_ids.append(a.course_id)

    items = []
    for course_id in course_ids:
        course = await db.get(Course, course_id)
        if not course:
            continue
        progress = await get_or_create_progress(db, course_id, user_id)
        quiz_result = await db.execute(select(Quiz.id).where(Quiz.course_id == course_id))
        quiz_id = quiz_result.scalars().first()
        last_attempt = None
        if quiz_id:
            att = await db.execute(
                select(Attempt)
                .where(Attempt.quiz_id == quiz_id, Attempt.user_id == user_id)
                .order_by(Attempt.created_at.desc())
                .limit(1)
            )
            last_attempt = att.scalars().first()
        items.append({
            "course": {"id": course.id, "title": course.title, "description": course.description},
            "progress": {
                "status": progress.status,
                "lessonsDone": progress.lessons_done,
                "score": progress.score,
                "updatedAt": progress.updated_at.isoformat() if progress.updated_at else None,
            },
            "lastAttempt": (
                {"id": last_attempt.id, "score": last_attempt.score, "createdAt": last_attempt.created_at.isoformat()}
                if last_attempt else None
            ),
            "totalLessons": len(course.lessons),
            "hasQuiz": quiz_id is not None,
        })
    await db.commit()

    stats = {
        "notStarted": sum(1 for i in items if i["progress"]["status"] == "NOT_STARTED"),
        "inProgress": sum(1 for i in items if i["progress"]["status"] == "IN_PROGRESS"),
        "completed": sum(1 for i in items if i["progress"]["status"] == "DONE"),
    }
    if status:
        items = [i for i in items if i["progress"]["status"] == status]
    items.sort(key=lambda i: i["progress"]["updatedAt"] or "", reverse=True)
    return {"courses": items, "total": len(items), "stats": stats}
