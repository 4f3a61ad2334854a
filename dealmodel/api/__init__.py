"""
API routes for the deal model.
"""

from fastapi import APIRouter

from dealmodel.api import calculations

router = APIRouter()

router.include_router(calculations.router, prefix="/calculate", tags=["calculations"])
