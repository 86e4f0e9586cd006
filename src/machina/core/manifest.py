import tomllib
from dataclasses import dataclass, field
from pathlib import Path

MANIFEST_NAME = "machina.toml"


@dataclass
class BuildConfig:
    """Which ``.machine`` files to compile and where output goes."""

    sources: list[str] = field(default_factory=lambda: ["**/*.machine"])  # globs
    output_dir: str = "generated"
    graph: bool = True  # Write <machine>.dot next to <machine>.py


@dataclass
class LoggingConfig:
    """Console logging configuration."""

    level: str = "INFO"
    color: bool = True  # NO_COLOR in the environment still wins


@dataclass
class ProjectManifest:
    """
    Project manifest loaded from machina.toml.

    Example:
        [project]
        name = "traffic"

        [build]
        sources = ["machines/*.machine"]
        output_dir = "src/traffic/generated"
        graph = true

        [logging]
        level = "DEBUG"
    """

    name: str
    project_root: Path
    build: BuildConfig = field(default_factory=BuildConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @property
    def output_dir(self) -> Path:
        return self.project_root / self.build.output_dir

    def source_files(self) -> list[Path]:
        """Files matched by the ``sources`` globs, sorted and de-duplicated."""
        found: set[Path] = set()
        for pattern in self.build.sources:
            found.update(p for p in self.project_root.glob(pattern) if p.is_file())
        return sorted(found)


def load_manifest(path: Path) -> ProjectManifest:
    data = tomllib.loads(path.read_text(encoding="utf-8"))

    project = data.get("project", {})
    build_data = data.get("build", {})
    logging_data = data.get("logging", {})

    defaults = BuildConfig()
    build_config = BuildConfig(
        sources=build_data.get("sources", defaults.sources),
        output_dir=build_data.get("output_dir", defaults.output_dir),
        graph=build_data.get("graph", defaults.graph),
    )

    logging_config = LoggingConfig(
        level=str(logging_data.get("level", "INFO")).upper(),
        color=logging_data.get("color", True),
    )

    return ProjectManifest(
        name=project.get("name", path.parent.name),
        project_root=path.parent,
        build=build_config,
        logging=logging_config,
    )


def find_manifest(start: Path) -> Path | None:
    """Return the nearest machina.toml in ``start`` or its parents."""
    start = start.resolve()
    for directory in [start, *start.parents]:
        candidate = directory / MANIFEST_NAME
        if candidate.is_file():
            return candidate
    return None
