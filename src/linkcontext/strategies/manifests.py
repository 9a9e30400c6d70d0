"""Well-known project files probed on source repositories.

Each probed filename has a fixed description and, for dependency manifests,
a parser that turns the file into a ``StructuredManifest``. Anything that is
not recognised, or fails to parse, is kept as a ``RawManifest``.
"""

from __future__ import annotations

import json
import re
import tomllib
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import structlog

from linkcontext.models.document import ProjectFile, RawManifest, StructuredManifest

log = structlog.get_logger()

PREVIEW_LENGTH = 500

_REQUIREMENT_NAME_RE = re.compile(r"^\s*([A-Za-z0-9][A-Za-z0-9._-]*)")


def _opt_str(value: Any) -> str | None:
    return value if isinstance(value, str) and value else None


def _requirement_name(spec: str) -> str | None:
    match = _REQUIREMENT_NAME_RE.match(spec)
    return match.group(1) if match else None


def _dedupe(names: list[str]) -> list[str]:
    return list(dict.fromkeys(names))


# ---------------------------------------------------------------------------
# Parsers
# ---------------------------------------------------------------------------


def parse_package_json(content: str) -> StructuredManifest:
    data = json.loads(content)
    if not isinstance(data, dict):
        raise ValueError("package.json is not an object")
    dependencies: list[str] = []
    for section in ("dependencies", "devDependencies", "peerDependencies"):
        table = data.get(section) or {}
        if isinstance(table, dict):
            dependencies.extend(table)
    return StructuredManifest(
        ecosystem="npm",
        name=_opt_str(data.get("name")),
        version=_opt_str(data.get("version")),
        description=_opt_str(data.get("description")),
        dependencies=_dedupe(dependencies),
    )


def parse_pyproject(content: str) -> StructuredManifest:
    data = tomllib.loads(content)
    project = data.get("project")
    if isinstance(project, dict):
        names = [_requirement_name(dep) for dep in project.get("dependencies", [])]
        return StructuredManifest(
            ecosystem="python",
            name=_opt_str(project.get("name")),
            version=_opt_str(project.get("version")),
            description=_opt_str(project.get("description")),
            dependencies=_dedupe([n for n in names if n]),
        )
    poetry = data.get("tool", {}).get("poetry")
    if isinstance(poetry, dict):
        deps = poetry.get("dependencies", {})
        return StructuredManifest(
            ecosystem="python",
            name=_opt_str(poetry.get("name")),
            version=_opt_str(poetry.get("version")),
            description=_opt_str(poetry.get("description")),
            dependencies=[name for name in deps if name.lower() != "python"],
        )
    raise ValueError("pyproject.toml has neither [project] nor [tool.poetry]")


def parse_cargo_toml(content: str) -> StructuredManifest:
    data = tomllib.loads(content)
    package = data.get("package", {})
    if not isinstance(package, dict):
        raise ValueError("Cargo.toml [package] is not a table")
    dependencies = list(data.get("dependencies", {}))
    return StructuredManifest(
        ecosystem="cargo",
        name=_opt_str(package.get("name")),
        version=_opt_str(package.get("version")),
        description=_opt_str(package.get("description")),
        dependencies=_dedupe(dependencies),
    )


def parse_requirements(content: str) -> StructuredManifest:
    names: list[str] = []
    for line in content.splitlines():
        line = line.split("#", 1)[0].strip()
        # Skip blanks, pip options (-r, -e, --index-url) and direct URLs
        if not line or line.startswith("-") or "://" in line:
            continue
        name = _requirement_name(line)
        if name:
            names.append(name)
    return StructuredManifest(ecosystem="python", dependencies=_dedupe(names))


def parse_go_mod(content: str) -> StructuredManifest:
    module: str | None = None
    go_version: str | None = None
    requires: list[str] = []
    in_require_block = False

    for raw_line in content.splitlines():
        line = raw_line.split("//", 1)[0].strip()
        if not line:
            continue
        if in_require_block:
            if line == ")":
                in_require_block = False
            else:
                requires.append(line.split()[0])
            continue
        if line.startswith("module "):
            module = line.split(None, 1)[1].strip()
        elif line.startswith("go "):
            go_version = line.split(None, 1)[1].strip()
        elif line == "require (":
            in_require_block = True
        elif line.startswith("require "):
            requires.append(line.split()[1])

    if module is None:
        raise ValueError("go.mod has no module directive")
    return StructuredManifest(
        ecosystem="go",
        name=module,
        version=go_version,
        dependencies=_dedupe(requires),
    )


# ---------------------------------------------------------------------------
# Probe list
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ProbedFile:
    name: str
    type: str
    description: str
    parser: Callable[[str], StructuredManifest] | None = None


PROBED_FILES: tuple[ProbedFile, ...] = (
    ProbedFile("package.json", "json", "Node.js dependencies and scripts", parse_package_json),
    ProbedFile("requirements.txt", "text", "Python dependencies", parse_requirements),
    ProbedFile("pyproject.toml", "toml", "Python project configuration", parse_pyproject),
    ProbedFile("Cargo.toml", "toml", "Rust project configuration", parse_cargo_toml),
    ProbedFile("go.mod", "text", "Go module configuration", parse_go_mod),
    ProbedFile("LICENSE", "text", "Project license"),
    ProbedFile("Dockerfile", "docker", "Docker configuration"),
)


def build_project_file(probed: ProbedFile, content: str) -> ProjectFile:
    """Wrap a fetched file as a ProjectFile with preview, size and manifest."""
    preview = content[:PREVIEW_LENGTH]
    manifest: StructuredManifest | RawManifest = RawManifest(text=preview)
    if probed.parser is not None:
        try:
            manifest = probed.parser(content)
        except (ValueError, TypeError, AttributeError):
            # TOMLDecodeError, JSONDecodeError and ValidationError are ValueErrors
            log.debug("manifest_parse_failed", file=probed.name, exc_info=True)
    return ProjectFile(
        name=probed.name,
        type=probed.type,
        description=probed.description,
        content_preview=preview,
        size=len(content.encode("utf-8")),
        manifest=manifest,
    )
