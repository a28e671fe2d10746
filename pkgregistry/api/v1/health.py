# pkgregistry/api/v1/health.py
import time
from fastapi import APIRouter
from pydantic import BaseModel

router = APIRouter()
_started = time.time()

class Health(BaseModel):
    status: str
    uptime_s: float

@router.get("", response_model=Health)
def health():
    return Health(status="ok", uptime_s=time.time() - _started)
