"""Build and version information reported by the metrics listener"""

import os
from importlib.metadata import PackageNotFoundError, version as package_version

from pydantic import BaseModel, Field


MISSING_VERSION = "MISSING VERSION INFO"
MISSING_GIT_COMMIT = "MISSING GIT COMMIT"
MISSING_BUILD_TIME = "MISSING BUILD TIME"


class VersionInfo(BaseModel):
    version:    str
    git_commit: str = Field(serialization_alias="gitCommit")
    build_time: str = Field(serialization_alias="buildTime")


def get_version_info() -> VersionInfo:
    """Installed package version plus SITEPUB_GIT_COMMIT / SITEPUB_BUILD_TIME from the build."""
    try:
        ver = package_version("sitepub")
    except PackageNotFoundError:
        ver = MISSING_VERSION
    return VersionInfo(
        version=ver,
        git_commit=os.getenv("SITEPUB_GIT_COMMIT") or MISSING_GIT_COMMIT,
        build_time=os.getenv("SITEPUB_BUILD_TIME") or MISSING_BUILD_TIME,
    )
