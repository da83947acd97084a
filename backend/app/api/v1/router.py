from fastapi import APIRouter
from app.api.v1.endpoints import auth, users, projects, meetings, faculty, hod, students, notifications, health

api_router = APIRouter()

# Probes: /health/live and /health/ready
api_router.include_router(health.router)


@api_router.get("/health", tags=["Health"])
async def health_check():
    """Simple health check for load balancers"""
    return {"status": "healthy", "service": "disserto-api"}


api_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
api_router.include_router(users.router, prefix="/users", tags=["Users"])
api_router.include_router(projects.router, prefix="/projects", tags=["Projects"])
api_router.include_router(meetings.router, prefix="/meetings", tags=["Meetings"])
api_router.include_router(faculty.router, prefix="/faculty")
api_router.include_router(hod.router, prefix="/hod")
api_router.include_router(students.router, prefix="/students")
api_router.include_router(notifications.router, prefix="/notifications")
