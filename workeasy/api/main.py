from fastapi import APIRouter

from workeasy.api.routes import (
    admin,
    analytics,
    assignments,
    auth,
    break_rules,
    business_hours,
    export,
    health,
    holidays,
    invitations,
    job_roles,
    staffing_targets,
    store_members,
    stores,
    work_items,
)

api_router = APIRouter()
api_router.include_router(health.router)
api_router.include_router(auth.router)
api_router.include_router(admin.router)

# Stores and membership
api_router.include_router(stores.router)
api_router.include_router(store_members.router)
api_router.include_router(invitations.router)

# Schedule configuration
api_router.include_router(break_rules.router)
api_router.include_router(business_hours.router)
api_router.include_router(holidays.router)
api_router.include_router(work_items.router)
api_router.include_router(staffing_targets.router)
api_router.include_router(job_roles.store_job_roles_router)
api_router.include_router(job_roles.user_job_roles_router)
api_router.include_router(job_roles.required_roles_router)

# Scheduling
api_router.include_router(assignments.router)
api_router.include_router(export.router)
api_router.include_router(analytics.router)
