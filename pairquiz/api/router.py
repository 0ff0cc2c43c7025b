"""
PairQuiz — Main API Router

Aggregates all sub-routers under a single prefix so that ``pairquiz.main``
can mount the entire API surface with one ``include_router`` call.  Every
``/admin`` router is guarded by ``require_admin``.
"""

from fastapi import APIRouter, Depends

from pairquiz.api import participants, sessions, settings, vouchers
from pairquiz.api.admin import coupon_templates, dashboard, questions
from pairquiz.api.admin import participants as admin_participants
from pairquiz.api.admin import sessions as admin_sessions
from pairquiz.api.admin import settings as admin_settings
from pairquiz.api.deps import require_admin

router = APIRouter()

router.include_router(participants.router, prefix="/participants", tags=["Participants"])
router.include_router(sessions.router, prefix="/sessions", tags=["Sessions"])
router.include_router(vouchers.router, prefix="/vouchers", tags=["Vouchers"])
router.include_router(settings.router, prefix="/settings", tags=["Settings"])

_admin = [Depends(require_admin)]
router.include_router(
    dashboard.router, prefix="/admin", tags=["Admin - Dashboard"], dependencies=_admin
)
router.include_router(
    admin_participants.router,
    prefix="/admin/participants",
    tags=["Admin - Participants"],
    dependencies=_admin,
)
router.include_router(
    admin_sessions.router,
    prefix="/admin/sessions",
    tags=["Admin - Sessions"],
    dependencies=_admin,
)
router.include_router(
    questions.router, prefix="/admin/questions", tags=["Admin - Questions"], dependencies=_admin
)
router.include_router(
    coupon_templates.router,
    prefix="/admin/coupon-templates",
    tags=["Admin - Coupon Templates"],
    dependencies=_admin,
)
router.include_router(
    admin_settings.router,
    prefix="/admin/settings",
    tags=["Admin - Settings"],
    dependencies=_admin,
)
