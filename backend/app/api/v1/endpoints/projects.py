"""
Projects API

Proposal submission and review, guide/panel assignment, progress reports
and the final dissertation upload.
"""
from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from app.core.database import get_db
from app.core.exceptions import MissingFieldsError
from app.models.user import User
from app.modules.auth.dependencies import get_current_user, require_action
from app.modules.authorization.policy import Action
from app.schemas.common import MessageResponse
from app.schemas.project import (
    PanelUpdate,
    ProgressCreate,
    ProgressResponse,
    ProjectProgressUpdate,
    ProjectResponse,
    ProjectStatusUpdate,
    ProjectUpdate,
    ProposalCreate,
    SubmissionResponse,
    split_csv,
)
from app.services.project_service import ProjectService

router = APIRouter()


@router.get("", response_model=List[ProjectResponse])
async def list_projects(
    current_user: User = Depends(require_action(Action.PROJECT_LIST)),
    db: AsyncSession = Depends(get_db)
):
    """Every project (admin) or the projects of the caller's department (HOD)"""
    return await ProjectService(db).list_projects(current_user)


@router.post("/proposal", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
async def submit_proposal(
    proposal: ProposalCreate,
    current_user: User = Depends(require_action(Action.PROJECT_CREATE)),
    db: AsyncSession = Depends(get_db)
):
    """
    Submit a new proposal (status pending). Refused while the student already
    has a pending or approved project. `technologies` may be a list or a
    comma separated string.
    """
    return await ProjectService(db).submit_proposal(current_user, proposal)


# Older clients post proposals to the collection itself
router.add_api_route(
    "",
    submit_proposal,
    methods=["POST"],
    response_model=ProjectResponse,
    status_code=status.HTTP_201_CREATED,
    include_in_schema=False,
)


@router.get("/student", response_model=List[ProjectResponse])
async def student_projects(
    student_id: Optional[str] = Query(None, alias="studentId"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Own projects for students; other roles pass studentId and see what they may read"""
    return await ProjectService(db).list_student_projects(current_user, student_id)


@router.post("/progress", response_model=ProgressResponse, status_code=status.HTTP_201_CREATED)
async def submit_progress(
    data: ProgressCreate,
    current_user: User = Depends(require_action(Action.PROGRESS_CREATE)),
    db: AsyncSession = Depends(get_db)
):
    return await ProjectService(db).add_progress(current_user, data)


@router.post("/final-submission", response_model=SubmissionResponse, status_code=status.HTTP_201_CREATED)
async def submit_final_dissertation(
    project_id: Optional[str] = Form(None, alias="projectId"),
    title: Optional[str] = Form(None),
    abstract: Optional[str] = Form(None),
    keywords: Optional[str] = Form(None),
    file: Optional[UploadFile] = File(None),
    current_user: User = Depends(require_action(Action.SUBMISSION_CREATE)),
    db: AsyncSession = Depends(get_db)
):
    """Upload the final dissertation PDF; moves the project from approved to submitted"""
    missing = [
        name for name, value in (
            ("projectId", project_id), ("title", title), ("abstract", abstract), ("file", file),
        )
        if not value
    ]
    if missing:
        raise MissingFieldsError(missing)

    return await ProjectService(db).final_submission(
        current_user,
        project_id,
        title=title.strip(),
        abstract=abstract.strip(),
        keywords=split_csv(keywords or ""),
        upload=file,
    )


@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(
    project_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await ProjectService(db).get_for(current_user, project_id)


@router.put("/{project_id}", response_model=ProjectResponse)
async def update_project(
    project_id: str,
    data: ProjectUpdate,
    current_user: User = Depends(require_action(Action.PROJECT_UPDATE)),
    db: AsyncSession = Depends(get_db)
):
    changes = data.model_dump(exclude_unset=True)
    return await ProjectService(db).update_project(current_user, project_id, changes)


@router.delete("/{project_id}", response_model=MessageResponse)
async def delete_project(
    project_id: str,
    current_user: User = Depends(require_action(Action.PROJECT_DELETE)),
    db: AsyncSession = Depends(get_db)
):
    await ProjectService(db).delete_project(current_user, project_id)
    return MessageResponse(message="Project removed")


@router.api_route("/{project_id}/status", methods=["PATCH", "PUT"], response_model=ProjectResponse)
async def update_project_status(
    project_id: str,
    data: ProjectStatusUpdate,
    current_user: User = Depends(require_action(Action.PROJECT_TRANSITION)),
    db: AsyncSession = Depends(get_db)
):
    """
    Review a proposal. Allowed transitions: pending -> approved | rejected and
    submitted -> completed. A `guide` (faculty id) may be supplied with the decision.
    """
    return await ProjectService(db).change_status(
        current_user, project_id, data.status, comments=data.comments, guide_id=data.guide,
    )


@router.get("/{project_id}/progress", response_model=List[ProgressResponse])
async def project_progress(
    project_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await ProjectService(db).list_progress(current_user, project_id)


@router.put("/{project_id}/progress", response_model=ProjectResponse)
async def set_project_progress(
    project_id: str,
    data: ProjectProgressUpdate,
    current_user: User = Depends(require_action(Action.PROJECT_SET_PROGRESS)),
    db: AsyncSession = Depends(get_db)
):
    return await ProjectService(db).set_progress(current_user, project_id, data.progress)


@router.put("/{project_id}/assign-guide/{guide_id}", response_model=ProjectResponse)
async def assign_project_guide(
    project_id: str,
    guide_id: str,
    current_user: User = Depends(require_action(Action.PROJECT_ASSIGN_GUIDE)),
    db: AsyncSession = Depends(get_db)
):
    return await ProjectService(db).assign_guide(current_user, project_id, guide_id)


@router.put("/{project_id}/panel", response_model=ProjectResponse)
async def assign_panel(
    project_id: str,
    data: PanelUpdate,
    current_user: User = Depends(require_action(Action.PROJECT_ASSIGN_PANEL)),
    db: AsyncSession = Depends(get_db)
):
    return await ProjectService(db).assign_panel(current_user, project_id, data.panel_member_ids)
