"""
Tests for Projects API Endpoints
"""
import pytest
from httpx import AsyncClient
from faker import Faker
from sqlalchemy import func, select

from app.models import Submission, UserRole
from tests.conftest import create_user, headers_for, proposal_payload

fake = Faker()


async def notifications_of(client: AsyncClient, headers: dict) -> list:
    response = await client.get('/api/v1/notifications', headers=headers)
    assert response.status_code == 200
    return response.json()


def pdf_upload(project_id: str, filename: str = 'thesis.pdf', content: bytes = b'%PDF-1.4 test dissertation'):
    data = {
        'projectId': project_id,
        'title': 'Final dissertation',
        'abstract': fake.text(max_nb_chars=200),
        'keywords': 'edge, privacy',
    }
    files = {'file': (filename, content, 'application/pdf')}
    return data, files


class TestProposalSubmission:

    @pytest.mark.asyncio
    async def test_submit_proposal(self, client: AsyncClient, student, hod, hod_headers, submit_proposal):
        project = await submit_proposal(technologies='Go, Rust')

        assert project['status'] == 'pending'
        assert project['student_id'] == student.id
        assert project['hod_assigned_id'] == hod.id
        assert project['technologies'] == ['Go', 'Rust']
        assert project['progress'] == 0

        notifications = await notifications_of(client, hod_headers)
        assert len(notifications) == 1
        assert notifications[0]['type'] == 'proposal'
        assert notifications[0]['title'] == 'New Project Proposal'

    @pytest.mark.asyncio
    async def test_collection_alias(self, client: AsyncClient, student_headers):
        response = await client.post('/api/v1/projects', json=proposal_payload(), headers=student_headers)

        assert response.status_code == 201

    @pytest.mark.asyncio
    async def test_proposal_without_hod_still_created(self, client: AsyncClient, submit_proposal):
        project = await submit_proposal()

        assert project['hod_assigned_id'] is None

    @pytest.mark.asyncio
    async def test_second_active_proposal_refused(self, client: AsyncClient, student_headers, submit_proposal):
        await submit_proposal()

        response = await client.post('/api/v1/projects/proposal', json=proposal_payload(),
                                     headers=student_headers)

        assert response.status_code == 400
        assert response.json()['code'] == 'ACTIVE_PROPOSAL_EXISTS'

    @pytest.mark.asyncio
    async def test_new_proposal_allowed_after_rejection(self, client: AsyncClient, hod_headers,
                                                        submit_proposal):
        project = await submit_proposal()
        response = await client.patch(
            f"/api/v1/projects/{project['id']}/status",
            json={'status': 'rejected', 'comments': 'Scope too broad'},
            headers=hod_headers
        )
        assert response.status_code == 200
        assert response.json()['feedback'] == 'Scope too broad'

        second = await submit_proposal()

        assert second['status'] == 'pending'

    @pytest.mark.asyncio
    async def test_faculty_cannot_submit(self, client: AsyncClient, faculty_headers):
        response = await client.post('/api/v1/projects/proposal', json=proposal_payload(),
                                     headers=faculty_headers)

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_missing_fields(self, client: AsyncClient, student_headers):
        payload = proposal_payload()
        del payload['problemStatement']

        response = await client.post('/api/v1/projects/proposal', json=payload, headers=student_headers)

        assert response.status_code == 400
        assert response.json()['code'] == 'VALIDATION_ERROR'

    @pytest.mark.asyncio
    async def test_department_defaults_to_student_department(self, client: AsyncClient, student_headers, hod):
        payload = proposal_payload()
        del payload['department']

        response = await client.post('/api/v1/projects/proposal', json=payload, headers=student_headers)

        assert response.status_code == 201
        body = response.json()
        assert body['department'] == 'CSE'
        assert body['hod_assigned_id'] == hod.id

    @pytest.mark.asyncio
    async def test_department_required_when_profile_has_none(self, client: AsyncClient, db_session):
        student = await create_user(db_session, UserRole.STUDENT, department=None, course='M.Tech')
        payload = proposal_payload()
        del payload['department']

        response = await client.post('/api/v1/projects/proposal', json=payload, headers=headers_for(student))

        assert response.status_code == 400
        body = response.json()
        assert body['code'] == 'MISSING_FIELDS'
        assert body['details']['fields'] == ['department']


class TestProposalReview:

    @pytest.mark.asyncio
    async def test_approve_with_guide(self, client: AsyncClient, db_session, student, student_headers,
                                      faculty, faculty_headers, approved_project):
        assert approved_project['status'] == 'approved'
        assert approved_project['guide_id'] == faculty.id
        assert approved_project['guide']['id'] == faculty.id
        assert approved_project['feedback'] == 'Looks good'

        await db_session.refresh(student)
        assert student.assigned_guide_id == faculty.id

        student_titles = {n['title'] for n in await notifications_of(client, student_headers)}
        assert student_titles == {'Project Approved', 'Guide Assigned'}

        guide_titles = [n['title'] for n in await notifications_of(client, faculty_headers)]
        assert guide_titles == ['New Project Assignment']

    @pytest.mark.asyncio
    async def test_status_accepts_put(self, client: AsyncClient, hod, hod_headers, submit_proposal):
        project = await submit_proposal()

        response = await client.put(
            f"/api/v1/projects/{project['id']}/status",
            json={'status': 'approved'},
            headers=hod_headers
        )

        assert response.status_code == 200
        assert response.json()['status'] == 'approved'

    @pytest.mark.asyncio
    async def test_other_department_hod_forbidden(self, client: AsyncClient, other_hod, submit_proposal):
        project = await submit_proposal()

        response = await client.patch(
            f"/api/v1/projects/{project['id']}/status",
            json={'status': 'approved'},
            headers=headers_for(other_hod)
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_student_cannot_review(self, client: AsyncClient, student_headers, submit_proposal):
        project = await submit_proposal()

        response = await client.patch(
            f"/api/v1/projects/{project['id']}/status",
            json={'status': 'approved'},
            headers=student_headers
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_invalid_transition(self, client: AsyncClient, hod_headers, submit_proposal):
        project = await submit_proposal()
        await client.patch(f"/api/v1/projects/{project['id']}/status",
                           json={'status': 'rejected'}, headers=hod_headers)

        response = await client.patch(f"/api/v1/projects/{project['id']}/status",
                                      json={'status': 'approved'}, headers=hod_headers)

        assert response.status_code == 400
        assert response.json()['code'] == 'INVALID_STATUS_TRANSITION'

    @pytest.mark.asyncio
    async def test_unknown_status(self, client: AsyncClient, hod_headers, submit_proposal):
        project = await submit_proposal()

        response = await client.patch(f"/api/v1/projects/{project['id']}/status",
                                      json={'status': 'archived'}, headers=hod_headers)

        assert response.status_code == 400
        assert response.json()['code'] == 'INVALID_STATUS'

    @pytest.mark.asyncio
    async def test_non_faculty_guide_leaves_project_untouched(self, client: AsyncClient, student_headers,
                                                              hod, hod_headers, submit_proposal):
        project = await submit_proposal()

        response = await client.patch(
            f"/api/v1/projects/{project['id']}/status",
            json={'status': 'approved', 'guide': hod.id},
            headers=hod_headers
        )

        assert response.status_code == 400
        assert response.json()['code'] == 'INVALID_GUIDE'
        current = await client.get(f"/api/v1/projects/{project['id']}", headers=student_headers)
        assert current.json()['status'] == 'pending'

    @pytest.mark.asyncio
    async def test_unknown_project(self, client: AsyncClient, hod_headers):
        response = await client.patch('/api/v1/projects/not-a-real-id/status',
                                      json={'status': 'approved'}, headers=hod_headers)

        assert response.status_code == 404


class TestProjectAccess:

    @pytest.mark.asyncio
    async def test_hod_lists_only_department(self, client: AsyncClient, hod_headers, other_hod,
                                             submit_proposal):
        await submit_proposal()

        own = await client.get('/api/v1/projects', headers=hod_headers)
        other = await client.get('/api/v1/projects', headers=headers_for(other_hod))

        assert len(own.json()) == 1
        assert other.json() == []

    @pytest.mark.asyncio
    async def test_student_cannot_list_all(self, client: AsyncClient, student_headers):
        response = await client.get('/api/v1/projects', headers=student_headers)

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_other_student_cannot_read(self, client: AsyncClient, db_session, submit_proposal):
        project = await submit_proposal()
        stranger = await create_user(db_session, UserRole.STUDENT, course='M.Tech')

        response = await client.get(f"/api/v1/projects/{project['id']}", headers=headers_for(stranger))

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_student_projects(self, client: AsyncClient, student_headers, submit_proposal):
        project = await submit_proposal()

        response = await client.get('/api/v1/projects/student', headers=student_headers)

        assert [p['id'] for p in response.json()] == [project['id']]

    @pytest.mark.asyncio
    async def test_guide_updates_feedback_only(self, client: AsyncClient, faculty_headers, approved_project):
        url = f"/api/v1/projects/{approved_project['id']}"

        ok = await client.put(url, json={'feedback': 'Add a related work chapter'}, headers=faculty_headers)
        refused = await client.put(url, json={'title': 'New title'}, headers=faculty_headers)

        assert ok.status_code == 200
        assert ok.json()['feedback'] == 'Add a related work chapter'
        assert refused.status_code == 403

    @pytest.mark.asyncio
    async def test_hod_clears_feedback(self, client: AsyncClient, hod_headers, approved_project):
        assert approved_project['feedback'] == 'Looks good'

        response = await client.put(f"/api/v1/projects/{approved_project['id']}",
                                    json={'feedback': None, 'title': None}, headers=hod_headers)

        assert response.status_code == 200
        assert response.json()['feedback'] is None
        assert response.json()['title'] == approved_project['title']

    @pytest.mark.asyncio
    async def test_guide_sets_progress(self, client: AsyncClient, faculty_headers, approved_project):
        response = await client.put(f"/api/v1/projects/{approved_project['id']}/progress",
                                    json={'progress': 40}, headers=faculty_headers)

        assert response.status_code == 200
        assert response.json()['progress'] == 40

    @pytest.mark.asyncio
    async def test_admin_assigns_panel(self, client: AsyncClient, db_session, admin_headers, faculty,
                                       hod, approved_project):
        second = await create_user(db_session, UserRole.FACULTY)
        url = f"/api/v1/projects/{approved_project['id']}/panel"

        response = await client.put(url, json={'panelMemberIds': [faculty.id, second.id, faculty.id]},
                                    headers=admin_headers)
        refused = await client.put(url, json={'panelMemberIds': [hod.id]}, headers=admin_headers)

        assert response.status_code == 200
        assert response.json()['panel_member_ids'] == [faculty.id, second.id]
        assert refused.status_code == 400

        panel_view = await client.get(f"/api/v1/projects/{approved_project['id']}", headers=headers_for(second))
        assert panel_view.status_code == 200

    @pytest.mark.asyncio
    async def test_hod_reassigns_guide(self, client: AsyncClient, db_session, hod_headers, approved_project):
        new_guide = await create_user(db_session, UserRole.FACULTY)

        response = await client.put(
            f"/api/v1/projects/{approved_project['id']}/assign-guide/{new_guide.id}",
            headers=hod_headers
        )

        assert response.status_code == 200
        assert response.json()['guide_id'] == new_guide.id
        assert response.json()['status'] == 'approved'

    @pytest.mark.asyncio
    async def test_admin_deletes_project(self, client: AsyncClient, admin_headers, student_headers,
                                         submit_proposal):
        project = await submit_proposal()

        response = await client.delete(f"/api/v1/projects/{project['id']}", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()['message'] == 'Project removed'
        gone = await client.get(f"/api/v1/projects/{project['id']}", headers=student_headers)
        assert gone.status_code == 404


class TestProgressUpdates:

    @pytest.mark.asyncio
    async def test_progress_on_pending_refused(self, client: AsyncClient, student_headers, submit_proposal):
        project = await submit_proposal()

        response = await client.post('/api/v1/projects/progress', json={
            'projectId': project['id'],
            'title': 'Week 1',
            'description': 'Literature survey',
            'completionPercentage': 10,
        }, headers=student_headers)

        assert response.status_code == 400
        assert response.json()['code'] == 'PROJECT_NOT_APPROVED'

    @pytest.mark.asyncio
    async def test_progress_recorded(self, client: AsyncClient, student_headers, faculty_headers,
                                     approved_project):
        response = await client.post('/api/v1/projects/progress', json={
            'projectId': approved_project['id'],
            'title': 'Week 4',
            'description': 'Prototype running',
            'completionPercentage': 35,
            'challenges': 'Dataset access',
        }, headers=student_headers)

        assert response.status_code == 201
        assert response.json()['completion_percentage'] == 35

        project = await client.get(f"/api/v1/projects/{approved_project['id']}", headers=student_headers)
        assert project.json()['progress'] == 35

        history = await client.get(f"/api/v1/projects/{approved_project['id']}/progress",
                                   headers=faculty_headers)
        assert len(history.json()) == 1

        titles = [n['title'] for n in await notifications_of(client, faculty_headers)]
        assert 'New Progress Update' in titles

    @pytest.mark.asyncio
    async def test_percentage_range(self, client: AsyncClient, student_headers, approved_project):
        response = await client.post('/api/v1/projects/progress', json={
            'projectId': approved_project['id'],
            'title': 'Too much',
            'description': 'Overshoot',
            'completionPercentage': 120,
        }, headers=student_headers)

        assert response.status_code == 400


class TestFinalSubmission:

    @pytest.mark.asyncio
    async def test_submission_before_approval_refused(self, client: AsyncClient, db_session, student_headers,
                                                      submit_proposal):
        project = await submit_proposal()
        data, files = pdf_upload(project['id'])

        response = await client.post('/api/v1/projects/final-submission', data=data, files=files,
                                     headers=student_headers)

        assert response.status_code == 400
        assert response.json()['code'] == 'PROJECT_NOT_APPROVED'
        count = await db_session.scalar(select(func.count()).select_from(Submission))
        assert count == 0

    @pytest.mark.asyncio
    async def test_non_pdf_rejected(self, client: AsyncClient, student_headers, approved_project):
        data, files = pdf_upload(approved_project['id'], filename='thesis.docx')

        response = await client.post('/api/v1/projects/final-submission', data=data, files=files,
                                     headers=student_headers)

        assert response.status_code == 400
        assert response.json()['code'] == 'INVALID_FILE_TYPE'

    @pytest.mark.asyncio
    async def test_missing_fields(self, client: AsyncClient, student_headers, approved_project):
        response = await client.post(
            '/api/v1/projects/final-submission',
            data={'projectId': approved_project['id']},
            headers=student_headers
        )

        assert response.status_code == 400
        body = response.json()
        assert body['code'] == 'MISSING_FIELDS'
        assert body['details']['fields'] == ['title', 'abstract', 'file']

    @pytest.mark.asyncio
    async def test_submit_then_complete(self, client: AsyncClient, student_headers, faculty_headers,
                                        hod_headers, approved_project):
        data, files = pdf_upload(approved_project['id'])

        response = await client.post('/api/v1/projects/final-submission', data=data, files=files,
                                     headers=student_headers)

        assert response.status_code == 201
        submission = response.json()
        assert submission['keywords'] == ['edge', 'privacy']
        assert submission['file_url'].startswith('/uploads/submissions/')
        assert submission['file_name'] == 'thesis.pdf'
        assert submission['status'] == 'pending'

        status = await client.get(f"/api/v1/students/final-submission/{approved_project['id']}",
                                  headers=student_headers)
        assert status.json()['project']['status'] == 'submitted'
        assert status.json()['submission']['id'] == submission['id']

        guide_titles = [n['title'] for n in await notifications_of(client, faculty_headers)]
        hod_titles = [n['title'] for n in await notifications_of(client, hod_headers)]
        assert 'Final Dissertation Submitted' in guide_titles
        assert 'Final Dissertation Submitted' in hod_titles

        again = await client.post('/api/v1/projects/final-submission', data=data,
                                  files=pdf_upload(approved_project['id'])[1], headers=student_headers)
        assert again.status_code == 400

        completed = await client.patch(f"/api/v1/projects/{approved_project['id']}/status",
                                       json={'status': 'completed'}, headers=hod_headers)
        assert completed.status_code == 200
        assert completed.json()['status'] == 'completed'
