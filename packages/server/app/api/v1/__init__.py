"""
API v1 Router

All endpoints are scoped to the caller's organization, resolved from the
session token.
"""

from fastapi import APIRouter
from . import chat, comments, customers, files, invitations, members, notifications, organizations, projects, tasks

router = APIRouter()

router.include_router(organizations.router)
router.include_router(members.router)
router.include_router(invitations.router, prefix="/invitations", tags=["Invitations"])
router.include_router(customers.router, prefix="/customers", tags=["Customers"])
router.include_router(projects.router, prefix="/projects", tags=["Projects"])
router.include_router(chat.router, prefix="/projects", tags=["Chat"])
router.include_router(tasks.router, prefix="/tasks", tags=["Tasks"])
router.include_router(comments.router, tags=["Comments"])
router.include_router(files.router, prefix="/files", tags=["Files"])
router.include_router(notifications.router, prefix="/notifications", tags=["Notifications"])


@router.get("/", tags=["API"])
async def api_root():
    """API root: returns version and available endpoints."""
    return {
        "api": "v1",
        "version": "0.1.0",
        "endpoints": [
            "/organization",
            "/profile",
            "/members",
            "/roles",
            "/invitations",
            "/customers",
            "/projects",
            "/projects/{project_id}/board",
            "/projects/{project_id}/messages",
            "/tasks",
            "/tasks/{task_id}/comments",
            "/files",
            "/notifications",
        ],
    }
