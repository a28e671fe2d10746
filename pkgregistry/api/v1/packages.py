# pkgregistry/api/v1/packages.py
from typing import List

from fastapi import APIRouter, Depends

from ...domain import schemas
from ...domain.models import PackageRecord
from ...domain.service import RegistryService
from ... import deps

router = APIRouter()

def _package(rec: PackageRecord, data: schemas.PackageData) -> schemas.Package:
    return schemas.Package(metadata=schemas.PackageMetadata.from_summary(rec.summary()), data=data)

@router.post("/package", response_model=schemas.Package, status_code=201)
def upload_package(body: schemas.PackageUpload,
                   registry: RegistryService = Depends(deps.get_registry),
                   user=Depends(deps.require_contributor)):
    rec = deps.unwrap(registry.ingest_package(body.to_request()))
    return _package(rec, schemas.PackageData(Content=body.Content, URL=body.URL,
                                             JSProgram=body.JSProgram, debloat=body.debloat))

@router.put("/package/{id}", response_model=schemas.Package)
def update_package(id: str, body: schemas.PackageUpdate,
                   registry: RegistryService = Depends(deps.get_registry),
                   user=Depends(deps.require_contributor)):
    rec = deps.unwrap(registry.update_package(id, body.to_request()))
    return _package(rec, body.data)

@router.get("/package/{id}", response_model=schemas.Package)
def download_package(id: str, registry: RegistryService = Depends(deps.get_registry),
                     user=Depends(deps.require_viewer)):
    pkg = deps.unwrap(registry.get_package(id))
    return _package(pkg.record, schemas.PackageData(Content=pkg.content, URL=pkg.record.source_url,
                                                    JSProgram=pkg.record.js_program,
                                                    debloat=pkg.record.debloated))

@router.post("/packages", response_model=List[schemas.PackageMetadata])
def list_packages(queries: List[schemas.PackageQueryIn],
                  registry: RegistryService = Depends(deps.get_registry),
                  user=Depends(deps.require_viewer)):
    found = deps.unwrap(registry.resolve_queries([q.to_query() for q in queries]))
    return [schemas.PackageMetadata.from_summary(s) for s in found]

@router.post("/package/byRegEx", response_model=List[schemas.PackageMetadata])
def search_by_regex(body: schemas.PackageRegEx,
                    registry: RegistryService = Depends(deps.get_registry),
                    user=Depends(deps.require_viewer)):
    found = deps.unwrap(registry.search_by_pattern(body.RegEx))
    return [schemas.PackageMetadata.from_summary(s) for s in found]
