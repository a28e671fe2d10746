# pkgregistry/api/v1/admin.py
from fastapi import APIRouter, Depends

from ...domain import schemas
from ...domain.service import RegistryService
from ... import deps

router = APIRouter()

@router.delete("/reset", response_model=schemas.ResetResult)
def reset(registry: RegistryService = Depends(deps.get_registry),
          user=Depends(deps.require_admin)):
    """
    Delete every package record and its stored archive.
    Per-package failures are reported, not raised.
    """
    report = deps.unwrap(registry.reset_registry())
    return schemas.ResetResult(deleted=report.deleted, failures=report.failures)
