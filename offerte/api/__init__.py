"""API router for v1 endpoints."""

from fastapi import APIRouter

from offerte.api import analyze, documents, review

router = APIRouter()

# Briefing -> offerte generation (SSE)
router.include_router(analyze.router, tags=["analyze"])

# Review screen: key facts and field edits
router.include_router(review.router, tags=["review"])

# PDF and JSON exports
router.include_router(documents.router, tags=["documents"])
