import asyncio
from pathlib import Path

import pytest
from fastapi.testclient import TestClient


def entity(link_text: str) -> dict:
    return {"source_path": "Home.md", "link_text": link_text}


def test_health(test_client: TestClient) -> None:
    response = test_client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


def test_links_endpoint_returns_all_lists(test_client: TestClient) -> None:
    """Test that opening a note returns every link list of the bundle."""
    response = test_client.get("/api/links", params={"path": "Home.md"})
    assert response.status_code == 200

    bundle = response.json()
    assert bundle["active_path"] == "Home.md"
    assert bundle["forward_links"] == [entity("Alpha"), entity("Beta")]
    assert bundle["new_links"] == [entity("Someday")]
    assert bundle["backward_links"] == [entity("Archive/Old")]
    assert bundle["twohop_links"] == [
        {
            "link": entity("Projects/Alpha.md"),
            "file_entities": [entity("Archive/Old"), entity("Gamma")],
        }
    ]
    assert bundle["unresolved_twohop_links"] == []
    assert bundle["tag_links"] == [
        {"tag": "#hub", "file_entities": [entity("Gamma")]},
        {"tag": "#daily", "file_entities": [entity("Projects/Beta")]},
    ]


def test_links_endpoint_not_found(test_client: TestClient) -> None:
    response = test_client.get("/api/links", params={"path": "Nowhere.md"})
    assert response.status_code == 404
    assert "Note not found" in response.text


def test_disabled_links(test_client: TestClient) -> None:
    """Test that no links are computed while the feature is disabled."""
    assert test_client.post("/api/disable").json() == {"enabled": False}

    response = test_client.get("/api/links", params={"path": "Home.md"})
    assert response.status_code == 409

    assert test_client.post("/api/enable").json() == {"enabled": True}
    response = test_client.get("/api/links", params={"path": "Home.md"})
    assert response.status_code == 200


def test_preview_endpoint_returns_image_url(test_client: TestClient) -> None:
    bundle = test_client.get("/api/links", params={"path": "Home.md"}).json()

    response = test_client.get(
        "/api/preview",
        params={
            "source_path": "Home.md",
            "link_text": "Alpha",
            "generation": bundle["generation"],
        },
    )

    assert response.status_code == 200
    assert response.json() == {
        "preview": "/api/resources/Z%20-%20Attachements/chart.png",
        "stale": False,
    }


def test_preview_endpoint_text(test_client: TestClient) -> None:
    bundle = test_client.get("/api/links", params={"path": "Home.md"}).json()

    response = test_client.get(
        "/api/preview",
        params={"source_path": "Home.md", "link_text": "Gamma", "generation": bundle["generation"]},
    )

    assert response.json() == {"preview": "Gamma points at [[Alpha]].", "stale": False}


def test_stale_preview(test_client: TestClient) -> None:
    """Test that a preview requested for a previously active note is discarded."""
    old = test_client.get("/api/links", params={"path": "Home.md"}).json()
    test_client.get("/api/links", params={"path": "Gamma.md"})

    response = test_client.get(
        "/api/preview",
        params={"source_path": "Home.md", "link_text": "Alpha", "generation": old["generation"]},
    )

    assert response.json() == {"preview": "", "stale": True}


def test_resource_endpoint(test_client: TestClient) -> None:
    response = test_client.get("/api/resources/Z%20-%20Attachements/chart.png")
    assert response.status_code == 200
    assert response.content == b"\x89PNG fake"


def test_resource_endpoint_not_found(test_client: TestClient) -> None:
    response = test_client.get("/api/resources/Z%20-%20Attachements/missing.png")
    assert response.status_code == 404


def test_metadata_resolved_endpoint(test_client: TestClient, vault_directory: Path) -> None:
    """Test that edits re-aggregate only when the links of the active note change."""
    test_client.get("/api/links", params={"path": "Home.md"})

    response = test_client.post("/api/notes/resolved", params={"path": "Home.md"})
    assert response.json() == {"changed": False, "links": None}

    home = vault_directory / "Home.md"
    home.write_text(home.read_text(encoding="utf-8") + "Also [[Gamma]].\n", encoding="utf-8")

    response = test_client.post("/api/notes/resolved", params={"path": "Home.md"})
    result = response.json()
    assert result["changed"] is True
    assert [it["link_text"] for it in result["links"]["forward_links"]] == [
        "Alpha",
        "Beta",
        "Gamma",
    ]
    assert result["links"]["twohop_links"][0]["file_entities"] == [entity("Archive/Old")]


def test_refresh_endpoint(test_client: TestClient, vault_directory: Path) -> None:
    (vault_directory / "Delta.md").write_text("[[Home]]", encoding="utf-8")

    response = test_client.post("/api/vault/refresh")

    assert response.json() == {"notes": 6}


def test_refresh_runs_outside_event_loop(test_client: TestClient, local_vault) -> None:
    """Test that the vault rescan does not block the event loop."""
    calls = []
    scan = local_vault.refresh

    def refresh() -> None:
        with pytest.raises(RuntimeError):
            asyncio.get_running_loop()
        calls.append(True)
        scan()

    local_vault.refresh = refresh

    assert test_client.post("/api/vault/refresh").status_code == 200
    assert test_client.post("/api/notes/resolved", params={"path": "Home.md"}).status_code == 200
    assert calls == [True, True]
