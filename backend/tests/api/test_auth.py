"""
Tests for Authentication API Endpoints
"""
import pytest
from httpx import AsyncClient
from faker import Faker

from tests.conftest import PASSWORD

fake = Faker()


def registration(**overrides) -> dict:
    data = {
        'fullName': fake.name(),
        'email': fake.unique.email(),
        'password': 'secret123',
        'role': 'student',
        'branch': 'CSE',
        'course': 'M.Tech',
    }
    data.update(overrides)
    return data


class TestRegister:

    @pytest.mark.asyncio
    async def test_register_student(self, client: AsyncClient):
        data = registration()

        response = await client.post('/api/v1/auth/register', json=data)

        assert response.status_code == 201
        body = response.json()
        assert body['access_token']
        assert body['token_type'] == 'bearer'
        assert body['user']['email'] == data['email'].lower()
        assert body['user']['role'] == 'student'
        # branch doubles as the canonical department
        assert body['user']['department'] == 'CSE'
        assert 'hashed_password' not in body['user']

    @pytest.mark.asyncio
    async def test_register_duplicate_email(self, client: AsyncClient):
        data = registration()
        await client.post('/api/v1/auth/register', json=data)

        response = await client.post('/api/v1/auth/register', json=registration(email=data['email']))

        assert response.status_code == 400
        assert response.json()['code'] == 'EMAIL_TAKEN'

    @pytest.mark.asyncio
    async def test_register_student_missing_course(self, client: AsyncClient):
        data = registration()
        del data['course']

        response = await client.post('/api/v1/auth/register', json=data)

        assert response.status_code == 400
        body = response.json()
        assert body['code'] == 'VALIDATION_ERROR'
        assert 'course' in body['message']

    @pytest.mark.asyncio
    async def test_admin_self_registration_rejected(self, client: AsyncClient):
        response = await client.post('/api/v1/auth/register', json=registration(role='admin'))

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_invalid_email(self, client: AsyncClient):
        response = await client.post('/api/v1/auth/register', json=registration(email='not-an-email'))

        assert response.status_code == 400


class TestLogin:

    @pytest.mark.asyncio
    async def test_login_success(self, client: AsyncClient, student):
        response = await client.post(
            '/api/v1/auth/login',
            json={'email': student.email, 'password': PASSWORD}
        )

        assert response.status_code == 200
        assert response.json()['user']['id'] == student.id

    @pytest.mark.asyncio
    async def test_login_wrong_password(self, client: AsyncClient, student):
        response = await client.post(
            '/api/v1/auth/login',
            json={'email': student.email, 'password': 'wrongpassword'}
        )

        assert response.status_code == 401
        assert response.json()['message'] == 'Invalid email or password'

    @pytest.mark.asyncio
    async def test_login_unknown_email(self, client: AsyncClient):
        response = await client.post(
            '/api/v1/auth/login',
            json={'email': fake.email(), 'password': 'whatever1'}
        )

        assert response.status_code == 401


class TestCurrentUser:

    @pytest.mark.asyncio
    async def test_me_without_token(self, client: AsyncClient):
        response = await client.get('/api/v1/auth/me')

        assert response.status_code == 401
        assert response.json()['message'] == 'Not authorized, no token'

    @pytest.mark.asyncio
    async def test_me_with_garbage_token(self, client: AsyncClient):
        response = await client.get('/api/v1/auth/me', headers={'Authorization': 'Bearer nonsense'})

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_me(self, client: AsyncClient, student, student_headers):
        response = await client.get('/api/v1/auth/me', headers=student_headers)

        assert response.status_code == 200
        assert response.json()['email'] == student.email

    @pytest.mark.asyncio
    async def test_update_profile(self, client: AsyncClient, student_headers):
        response = await client.put(
            '/api/v1/auth/me',
            json={'fullName': 'Updated Name', 'course': 'PhD'},
            headers=student_headers
        )

        assert response.status_code == 200
        assert response.json()['full_name'] == 'Updated Name'
        assert response.json()['course'] == 'PhD'

    @pytest.mark.asyncio
    async def test_profile_cannot_change_department_as_student(self, client: AsyncClient, student_headers):
        response = await client.put(
            '/api/v1/auth/me',
            json={'department': 'ECE'},
            headers=student_headers
        )

        assert response.status_code == 403
        assert response.json()['code'] == 'FORBIDDEN_FIELDS'

    @pytest.mark.asyncio
    async def test_profile_cannot_blank_branch(self, client: AsyncClient, student, student_headers):
        response = await client.put('/api/v1/auth/me', json={'branch': '   '}, headers=student_headers)

        assert response.status_code == 400
        assert response.json()['details']['fields'] == ['branch']

        me = await client.get('/api/v1/auth/me', headers=student_headers)
        assert me.json()['branch'] == 'CSE'


class TestAdminBootstrap:

    @pytest.mark.asyncio
    async def test_first_admin_then_refused(self, client: AsyncClient):
        data = {'fullName': 'Root', 'email': fake.unique.email(), 'password': 'secret123'}

        first = await client.post('/api/v1/auth/admin', json=data)
        second = await client.post('/api/v1/auth/admin', json={**data, 'email': fake.unique.email()})

        assert first.status_code == 201
        assert first.json()['user']['role'] == 'admin'
        assert second.status_code == 400
        assert second.json()['code'] == 'ADMIN_EXISTS'
