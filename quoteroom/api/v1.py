"""Centralized v1 API router: all module routers are included here."""

from fastapi import APIRouter

from quoteroom.modules.client_quote.router import router as client_quote_router
from quoteroom.modules.rfq.router import router as rfq_router

v1_router = APIRouter(prefix="/api/v1")
v1_router.include_router(rfq_router)
v1_router.include_router(client_quote_router)
