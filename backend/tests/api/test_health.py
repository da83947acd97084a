"""
Tests for health endpoints and the shared error envelope
"""
import pytest
from httpx import AsyncClient

from app.core.config import settings
from app.main import validate_critical_config


class TestHealth:

    @pytest.mark.asyncio
    async def test_root_health(self, client: AsyncClient):
        response = await client.get('/health')

        assert response.status_code == 200
        assert response.json()['status'] == 'healthy'

    @pytest.mark.asyncio
    async def test_liveness(self, client: AsyncClient):
        response = await client.get('/api/v1/health/live')

        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_security_headers(self, client: AsyncClient):
        response = await client.get('/health')

        assert response.headers['X-Content-Type-Options'] == 'nosniff'
        assert response.headers['X-Frame-Options'] == 'DENY'


class TestErrorEnvelope:

    @pytest.mark.asyncio
    async def test_unknown_route(self, client: AsyncClient):
        response = await client.get('/api/v1/does-not-exist')

        assert response.status_code == 404
        assert response.json()['success'] is False

    @pytest.mark.asyncio
    async def test_domain_error_shape(self, client: AsyncClient, hod_headers):
        response = await client.get('/api/v1/projects/0b6c9a5e-3d4f-4e0a-9d2c-1f2e3a4b5c6d', headers=hod_headers)

        body = response.json()
        assert response.status_code == 404
        assert body['success'] is False
        assert body['code'] == 'PROJECT_NOT_FOUND'
        assert body['message'] == 'Project not found'
        assert 'error' not in body


class TestStartupValidation:

    @pytest.mark.asyncio
    async def test_placeholder_secret_refused(self, monkeypatch):
        monkeypatch.setattr(settings, 'JWT_SECRET_KEY', 'CHANGE_ME')

        with pytest.raises(RuntimeError):
            await validate_critical_config()

    @pytest.mark.asyncio
    async def test_valid_config(self):
        assert await validate_critical_config() is True
