"""Shared test fixtures for the notionvault test suite."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from notionvault.config import NotionVaultConfig
from notionvault.models import ExportReport, MaterializedAttachment


@pytest.fixture
def config(tmp_path: Path) -> NotionVaultConfig:
    """Fast, deterministic test configuration writing under *tmp_path*."""
    return NotionVaultConfig(
        token="test_token_1234",
        output_dir=str(tmp_path / "notion"),
        retry_base_delay=0.0,
        retry_max_delay=0.0,
        # High RPS so the token bucket never blocks during tests.
        rate_limit_rps=10_000.0,
    )


@pytest.fixture
def report() -> ExportReport:
    """A fresh run accumulator."""
    return ExportReport()


@pytest.fixture
def materializer(config: NotionVaultConfig) -> MagicMock:
    """Materializer double returning ``<base_name>.png`` for every call."""
    mock = MagicMock()
    mock.directory = config.attachments_path

    async def _materialize(url, base_name, owner, timestamps=None):
        name = f"{base_name}.png"
        return MaterializedAttachment(
            path=config.attachments_path / name, file_name=name, downloaded=True
        )

    mock.materialize = AsyncMock(side_effect=_materialize)
    return mock
