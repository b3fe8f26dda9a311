from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from twohop.api import create_app
from twohop.config import Settings
from twohop.domain.vault import FileStat
from twohop.service import TwohopLinksService
from twohop.vault.local import LocalVault
from tests.fakes import FakeVault


@pytest.fixture
def twohop_vault() -> FakeVault:
    """Active note A links to T1 and T2; S1, S2 and S3 link to those targets too."""
    return FakeVault.from_links(
        {
            "A.md": ["T1", "T2"],
            "S1.md": ["T1"],
            "S2.md": ["T2"],
            "S3.md": ["T1", "T2"],
            "T1.md": [],
            "T2.md": [],
        }
    )


@pytest.fixture
def timed_vault() -> FakeVault:
    """Active note linked from three notes with distinct timestamps."""
    return FakeVault.from_links(
        {
            "active.md": [],
            "old.md": ["active"],
            "new.md": ["active"],
            "middle.md": ["active"],
        },
        stats={
            "active.md": FileStat(size=1, mtime=500, ctime=500),
            "old.md": FileStat(size=1, mtime=100, ctime=300),
            "new.md": FileStat(size=1, mtime=300, ctime=100),
            "middle.md": FileStat(size=1, mtime=200, ctime=200),
        },
    )


@pytest.fixture
def vault_directory(tmp_path: Path) -> Path:
    """Create a small vault on disk."""
    vault_dir = tmp_path / "vault"
    (vault_dir / "Projects").mkdir(parents=True)
    (vault_dir / "Archive").mkdir()
    (vault_dir / "Z - Attachements").mkdir()

    (vault_dir / "Home.md").write_text(
        "---\ntags: [hub]\n---\n# Home\n\nSee [[Alpha]] and [[Beta|the beta note]].\n"
        "Later: [[Someday]]\n#daily\n",
        encoding="utf-8",
    )
    (vault_dir / "Projects" / "Alpha.md").write_text(
        "Alpha links to [[Gamma]] and back to [[Home]].\n![](../Z%20-%20Attachements/chart.png)\n",
        encoding="utf-8",
    )
    (vault_dir / "Projects" / "Beta.md").write_text(
        "Beta mentions [[Alpha]] and [[Someday]].\n#daily\n", encoding="utf-8"
    )
    (vault_dir / "Gamma.md").write_text("Gamma points at [[Alpha]].\n#hub\n", encoding="utf-8")
    (vault_dir / "Archive" / "Old.md").write_text(
        "Old note about [[Home]] and [[Alpha]].\n", encoding="utf-8"
    )
    (vault_dir / "Z - Attachements" / "chart.png").write_bytes(b"\x89PNG fake")
    return vault_dir


@pytest.fixture
def local_vault(vault_directory: Path) -> LocalVault:
    return LocalVault(vault_directory)


@pytest.fixture
def test_settings(vault_directory: Path) -> Settings:
    return Settings(vault_path=str(vault_directory), exclude_paths=[], log_level="DEBUG")


@pytest.fixture
def test_client(local_vault: LocalVault, test_settings: Settings) -> TestClient:
    """Create test client on the on-disk vault."""
    service = TwohopLinksService(vault=local_vault, settings=test_settings)
    app = create_app(service=service, vault=local_vault)
    return TestClient(app)
