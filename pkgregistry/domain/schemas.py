# pkgregistry/domain/schemas.py
from pydantic import BaseModel, Field
from typing import Dict, List, Optional

from .models import IngestRequest, PackageQuery, PackageSummary

class PackageMetadata(BaseModel):
    Name: str
    Version: str
    ID: str

    @classmethod
    def from_summary(cls, s: PackageSummary) -> "PackageMetadata":
        return cls(Name=s.name, Version=s.version, ID=s.id)

class PackageData(BaseModel):
    Content: Optional[str] = None   # base64 zip
    URL: Optional[str] = None
    JSProgram: Optional[str] = None
    debloat: bool = False

class Package(BaseModel):
    metadata: PackageMetadata
    data: PackageData

class PackageUpload(PackageData):
    Name: str
    Version: Optional[str] = None

    def to_request(self) -> IngestRequest:
        return IngestRequest(name=self.Name, version=self.Version, content=self.Content,
                             url=self.URL, js_program=self.JSProgram, debloat=self.debloat)

class PackageUpdateMetadata(BaseModel):
    Name: Optional[str] = None
    Version: Optional[str] = None

class PackageUpdate(BaseModel):
    metadata: PackageUpdateMetadata = Field(default_factory=PackageUpdateMetadata)
    data: PackageData

    def to_request(self) -> IngestRequest:
        return IngestRequest(name=self.metadata.Name or "", version=self.metadata.Version,
                             content=self.data.Content, url=self.data.URL,
                             js_program=self.data.JSProgram, debloat=self.data.debloat)

class PackageQueryIn(BaseModel):
    Name: Optional[str] = None   # missing names are rejected by the query engine (400)
    Version: Optional[str] = None

    def to_query(self) -> PackageQuery:
        return PackageQuery(name=self.Name or "", version=self.Version)

class PackageRegEx(BaseModel):
    RegEx: str

class ResetResult(BaseModel):
    deleted: int
    failures: List[Dict[str, str]] = []

class LoginRequest(BaseModel):
    username: str
    password: str

class LoginResult(BaseModel):
    token: str
