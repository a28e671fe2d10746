# pkgregistry/domain/db_models.py
from sqlalchemy import Column, String, Integer, Boolean, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class PackageModel(Base):
    __tablename__ = "packages"

    package_id = Column(String, primary_key=True)
    name = Column(String, nullable=False, index=True)
    major = Column(Integer, nullable=False)
    minor = Column(Integer, nullable=False)
    patch = Column(Integer, nullable=False)
    content_ref = Column(String, nullable=False)
    source_url = Column(String, nullable=True)
    js_program = Column(Text, nullable=True)
    size_bytes = Column(Integer, nullable=False, default=0)
    debloated = Column(Boolean, nullable=False, default=False)
    created_at = Column(String, nullable=False)

    @classmethod
    def from_domain(cls, rec):
        return cls(
            package_id=rec.package_id,
            name=rec.name,
            major=rec.version.major,
            minor=rec.version.minor,
            patch=rec.version.patch,
            content_ref=rec.content_ref,
            source_url=rec.source_url,
            js_program=rec.js_program,
            size_bytes=rec.size_bytes,
            debloated=rec.debloated,
            created_at=rec.created_at,
        )

    def to_domain(self):
        """Convert database model to domain PackageRecord"""
        from ..core.versioning import SemVer
        from .models import PackageRecord
        return PackageRecord(
            package_id=self.package_id,
            name=self.name,
            version=SemVer(self.major, self.minor, self.patch),
            content_ref=self.content_ref,
            source_url=self.source_url,
            js_program=self.js_program,
            size_bytes=self.size_bytes or 0,
            debloated=bool(self.debloated),
            created_at=self.created_at,
        )
