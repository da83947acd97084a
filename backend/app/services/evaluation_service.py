"""
Evaluation Service Layer

One evaluation per (student, evaluator, evaluation_type); submitting again
updates it in place and recomputes the grade.
"""

from typing import Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import StudentNotAssignedError
from app.core.logging_config import logger
from app.models import Evaluation, EvaluationType, SCORE_FIELDS, User
from app.modules.authorization.policy import Action, ensure_authorized
from app.modules.lifecycle.events import EvaluationRecorded
from app.modules.notifications.dispatcher import NotificationDispatcher
from app.services.user_service import UserService

# (lower bound, grade), checked high to low
GRADE_BANDS = ((90, "A"), (80, "B"), (70, "C"), (60, "D"))
FAILING_GRADE = "F"


def compute_overall_grade(scores: Dict[str, Optional[float]]) -> str:
    """
    Letter grade from the mean of the five sub-scores.

    A missing score counts as 0, so a partial evaluation pulls the grade down.
    """
    values = [float(scores.get(name) or 0) for name in SCORE_FIELDS]
    overall = sum(values) / len(SCORE_FIELDS)
    for lower_bound, grade in GRADE_BANDS:
        if overall >= lower_bound:
            return grade
    return FAILING_GRADE


class EvaluationService:
    """Service for faculty evaluations of their assigned students"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.users = UserService(db)
        self.notifier = NotificationDispatcher(db)

    async def _find(self, student_id: str, evaluator_id: str, evaluation_type: EvaluationType) -> Optional[Evaluation]:
        result = await self.db.execute(
            select(Evaluation).where(
                Evaluation.student_id == student_id,
                Evaluation.evaluator_id == evaluator_id,
                Evaluation.evaluation_type == evaluation_type,
            )
        )
        return result.scalar_one_or_none()

    async def submit(self, actor: User, student_id: str, data) -> Evaluation:
        """Create or update the actor's evaluation of `student_id` for data.evaluation_type"""
        student = await self.users.get(student_id)
        if not student or student.assigned_guide_id != actor.id:
            raise StudentNotAssignedError(student_id)
        ensure_authorized(actor, Action.EVALUATION_WRITE, student)

        project = await self.users.latest_project(student.id)
        if not project:
            raise StudentNotAssignedError(student_id)

        scores = {name: getattr(data, name) for name in SCORE_FIELDS}
        grade = compute_overall_grade(scores)
        evaluator_id, evaluation_type = actor.id, data.evaluation_type
        student_id, project_id = student.id, project.id

        evaluation = await self._find(student_id, evaluator_id, evaluation_type)
        updated = evaluation is not None
        if not updated:
            evaluation = Evaluation(
                student_id=student_id,
                evaluator_id=evaluator_id,
                evaluation_type=evaluation_type,
                project_id=project_id,
            )
            self._apply(evaluation, scores, data.comments, grade)
            self.db.add(evaluation)
            try:
                await self.db.commit()
            except IntegrityError:
                await self.db.rollback()
                evaluation = await self._find(student_id, evaluator_id, evaluation_type)
                if evaluation is None:
                    raise
                updated = True

        if updated:
            evaluation.project_id = project_id
            self._apply(evaluation, scores, data.comments, grade)
            await self.db.commit()

        await self.db.refresh(evaluation)
        logger.info(
            f"[Evaluations] {evaluation_type.value} evaluation of {student_id} by {evaluator_id}: {grade}",
            extra={"event_type": "evaluation_recorded", "evaluation_id": evaluation.id, "updated": updated},
        )

        result = await self.notifier.dispatch(EvaluationRecorded(
            evaluation_id=evaluation.id,
            student_id=student_id,
            evaluation_type=evaluation_type.value,
            overall_grade=grade,
            updated=updated,
        ))
        if not result.ok:
            await self.db.refresh(evaluation)
        return evaluation

    @staticmethod
    def _apply(evaluation: Evaluation, scores: Dict[str, Optional[float]], comments: Optional[str], grade: str) -> None:
        for name, value in scores.items():
            setattr(evaluation, name, value)
        evaluation.comments = comments
        evaluation.overall_grade = grade

    async def list_for_evaluator(self, actor: User) -> List[Evaluation]:
        result = await self.db.execute(
            select(Evaluation).where(Evaluation.evaluator_id == actor.id).order_by(Evaluation.updated_at.desc())
        )
        return list(result.scalars().all())

    async def list_for_student(self, student: User) -> List[Evaluation]:
        result = await self.db.execute(
            select(Evaluation).where(Evaluation.student_id == student.id).order_by(Evaluation.created_at.desc())
        )
        return list(result.scalars().all())
