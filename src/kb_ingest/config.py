"""Project configuration loaded from pyproject.toml."""

from __future__ import annotations

import tomllib
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from kb_ingest.ingest.chunker.models import ChunkingConfig
from kb_ingest.ingest.parsers.types import DEFAULT_HEADING_PATTERNS, ParserOptions


class KBIngestConfig(BaseModel):
    """Configuration for kb-ingest."""

    # Chunking parameters (tiktoken-based)
    chunk_min_tokens: int = 300
    chunk_max_tokens: int = 800
    chunk_target_tokens: int = 500
    chunk_overlap_tokens: int = 50
    respect_section_boundaries: bool = True

    # Structural extraction
    detect_headings: bool = True
    preserve_page_boundaries: bool = True
    heading_patterns: list[str] = list(DEFAULT_HEADING_PATTERNS)
    min_heading_length: int = 3
    max_heading_length: int = 150

    def chunking_config(self, **overrides: Any) -> ChunkingConfig:
        """Build a validated ChunkingConfig, applying overrides on top."""
        values: dict[str, Any] = {
            "min_tokens": self.chunk_min_tokens,
            "max_tokens": self.chunk_max_tokens,
            "target_tokens": self.chunk_target_tokens,
            "overlap_tokens": self.chunk_overlap_tokens,
            "respect_section_boundaries": self.respect_section_boundaries,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return ChunkingConfig(**values)

    def parser_options(self, max_pages: int | None = None) -> ParserOptions:
        """Build ParserOptions from the structural extraction settings."""
        return ParserOptions(
            max_pages=max_pages,
            detect_headings=self.detect_headings,
            preserve_page_boundaries=self.preserve_page_boundaries,
            heading_patterns=tuple(self.heading_patterns),
            min_heading_length=self.min_heading_length,
            max_heading_length=self.max_heading_length,
        )


@lru_cache(maxsize=1)
def load_config() -> KBIngestConfig:
    """Load configuration from pyproject.toml.

    Returns:
        KBIngestConfig with settings from [tool.kb-ingest] section,
        falling back to defaults if not found.
    """
    pyproject_path = _find_pyproject()
    if pyproject_path is None:
        return KBIngestConfig()
    return load_config_file(pyproject_path)


def load_config_file(pyproject_path: Path) -> KBIngestConfig:
    """Read [tool.kb-ingest] from a specific pyproject.toml."""
    with pyproject_path.open("rb") as f:
        data = tomllib.load(f)

    tool_config: dict[str, Any] = data.get("tool", {}).get("kb-ingest", {})
    return KBIngestConfig(**tool_config)


def _find_pyproject() -> Path | None:
    """Find pyproject.toml by walking up from current file."""
    current = Path(__file__).resolve().parent
    for _ in range(10):  # Max 10 levels up
        candidate = current / "pyproject.toml"
        if candidate.exists():
            return candidate
        if current.parent == current:
            break
        current = current.parent
    return None
