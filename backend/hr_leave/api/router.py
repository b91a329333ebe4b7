from fastapi import APIRouter

from hr_leave.api.accruals import accrual_router, carryover_router
from hr_leave.api.assignments import assignments_router, employee_assignments_router, onboarding_router
from hr_leave.api.balances import adjustment_router, employee_balance_router
from hr_leave.api.leave_types import router as leave_types_router
from hr_leave.api.policies import router as policies_router
from hr_leave.api.requests import requests_router

api_router = APIRouter()
api_router.include_router(leave_types_router)
api_router.include_router(policies_router)
api_router.include_router(assignments_router)
api_router.include_router(employee_assignments_router)
api_router.include_router(onboarding_router)
api_router.include_router(employee_balance_router)
api_router.include_router(adjustment_router)
api_router.include_router(requests_router)
api_router.include_router(accrual_router)
api_router.include_router(carryover_router)
