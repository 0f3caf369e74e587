import json
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

MANIFEST_FILENAME = "gxr-manifest.json"
BUNDLE_DIRNAME = "components"


class BuildConfig(BaseModel):
    components_dir: Path = Path("./client/components")
    output_dir: Path = Path("./public")
    concurrency: int = Field(default=4, ge=1)
    debounce: float = Field(default=0.3, ge=0)
    esbuild: str = "esbuild"
    minify: bool = True

    @property
    def manifest_path(self) -> Path:
        return self.output_dir / MANIFEST_FILENAME

    @property
    def bundle_dir(self) -> Path:
        return self.output_dir / BUNDLE_DIRNAME


class ClientComponent(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: str
    key: str
    language: str
    fingerprint: str
    exports: tuple[str, ...] = ()

    @property
    def hydrated_export(self) -> str:
        if "default" in self.exports or not self.exports:
            return "default"
        return self.exports[0]


class BuildStatus(str, Enum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class BuildTarget(BaseModel):
    model_config = ConfigDict(frozen=True)

    component: ClientComponent
    source: Path
    output: Path
    status: BuildStatus = BuildStatus.PENDING
    error: str | None = None
    artifact_hash: str | None = None

    def succeeded(self, artifact_hash: str) -> "BuildTarget":
        return self.model_copy(update={"status": BuildStatus.SUCCEEDED, "artifact_hash": artifact_hash})

    def failed(self, error: str) -> "BuildTarget":
        return self.model_copy(update={"status": BuildStatus.FAILED, "error": error})


class ManifestEntry(BaseModel):
    file: str
    hash: str
    source_hash: str
    export: str = "default"


class BuildManifest(BaseModel):
    version: int = 1
    components: dict[str, ManifestEntry] = Field(default_factory=dict)

    def dumps(self) -> str:
        """Serialize deterministically: sorted keys, two-space indent, trailing newline."""
        return json.dumps(self.model_dump(mode="json"), indent=2, sort_keys=True) + "\n"


class BuildResult(BaseModel):
    components: int = 0
    targets: list[BuildTarget] = Field(default_factory=list)
    manifest_committed: bool = False
    manifest_changed: bool = False
    errors: list[str] = Field(default_factory=list)
    duration: float = 0.0

    @property
    def failed_targets(self) -> list[BuildTarget]:
        return [t for t in self.targets if t.status is BuildStatus.FAILED]

    @property
    def success(self) -> bool:
        return not self.errors and not self.failed_targets
