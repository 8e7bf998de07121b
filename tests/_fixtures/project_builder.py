"""Helper utilities for constructing temporary Node.js projects in tests."""

from __future__ import annotations

import json
import textwrap
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from docindex.config import DocIndexConfig, create_default_config, save_config
from docindex.docs_store import ensure_layout, write_doc_file, write_internal_doc_file
from docindex.models import FrameworkState


class ProjectBuilder:
    """Utility for writing package.json, docs and config into a throwaway project."""

    def __init__(self, tmp_path: Path) -> None:
        self.root = tmp_path / "project"
        self.root.mkdir()

    def package_json(
        self,
        dependencies: Optional[Mapping[str, str]] = None,
        dev_dependencies: Optional[Mapping[str, str]] = None,
        **extra: Any,
    ) -> Path:
        data: Dict[str, Any] = {"name": extra.pop("name", "sample-app"), "version": "1.0.0"}
        data.update(extra)
        if dependencies is not None:
            data["dependencies"] = dict(dependencies)
        if dev_dependencies is not None:
            data["devDependencies"] = dict(dev_dependencies)
        path = self.root / "package.json"
        path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        return path

    def write(self, files: Mapping[str, str]) -> None:
        """Write `path -> contents` entries into the project."""
        for relative, content in files.items():
            path = self.root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            normalised = textwrap.dedent(content).lstrip("\n")
            path.write_text(normalised, encoding="utf-8")

    def init(self, **frameworks: str) -> DocIndexConfig:
        """Create a saved config recording ``name=version`` frameworks."""
        ensure_layout(self.root)
        config = create_default_config(self.root, "sample-app", "backend")
        for name, version in frameworks.items():
            config.frameworks[name] = FrameworkState(
                name=name,
                version=version,
                last_update="2026-10-01T00:00:00Z",
                files=1,
            )
        save_config(config)
        return config

    def doc(self, framework: str, category: str, name: str, content: str = "# Doc\n") -> Path:
        return write_doc_file(self.root, framework, category, name, content)

    def internal_doc(self, category: str, name: str, content: str = "# Pattern\n") -> Path:
        return write_internal_doc_file(self.root, category, name, content)

    def read(self, relative: str) -> str:
        return (self.root / relative).read_text(encoding="utf-8")

    def path(self) -> Path:
        return self.root


__all__ = ["ProjectBuilder"]
