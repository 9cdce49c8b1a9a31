# server/api/health.py

from fastapi import APIRouter


router = APIRouter(tags=["health"])


@router.get("/health")
def health_check():
    return {"status": "OK", "message": "Server is running"}
