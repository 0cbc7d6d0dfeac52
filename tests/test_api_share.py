"""API tests for share links and the public /shared endpoint."""

import asyncio


async def _shared_note(client, headers, **share):
    response = await client.post("/notes", json={"title": "Public plan", "content": "Hello world"}, headers=headers)
    note = response.json()["data"]
    response = await client.post(f"/notes/{note['id']}/share", json=share, headers=headers)
    assert response.status_code == 200, response.text
    return note, response.json()["data"]


async def test_share_and_resolve_anonymously(client, register):
    headers, user = await register("Ada", "Lovelace")
    note, link = await _shared_note(client, headers)

    assert link["share_id"]
    assert link["share_url"].endswith(f"/shared/{link['share_id']}")
    assert link["permission"] == "view"
    assert link["expires_at"] is None

    client.cookies.clear()
    response = await client.get(f"/shared/{link['share_id']}")

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["id"] == note["id"]
    assert data["content"] == "Hello world"
    assert data["author"] == {"name": "Ada Lovelace", "first_name": "Ada", "last_name": "Lovelace"}
    # Nothing beyond display fields leaks out
    assert "email" not in data["author"]
    assert "collaborators" not in data
    assert "share_id" not in data
    # View-only links never offer comments
    assert data["allow_comments"] is False


async def test_share_settings_update_and_revoke(client, register):
    headers, _ = await register()
    note, link = await _shared_note(client, headers, permission="comment", expires_in_ms=60_000)
    url = f"/notes/{note['id']}/share"

    response = await client.put(url, json={"expires_in_ms": None, "allow_comments": True}, headers=headers)
    assert response.status_code == 200
    settings = response.json()["data"]
    assert settings["share_id"] == link["share_id"]
    assert settings["expires_at"] is None
    assert settings["permission"] == "comment"

    response = await client.delete(url, headers=headers)
    assert response.status_code == 200
    assert response.json()["data"]["is_shared"] is False
    assert response.json()["data"]["share_id"] is None

    response = await client.get(f"/shared/{link['share_id']}")
    assert response.status_code == 404

    response = await client.delete(url, headers=headers)
    assert response.status_code == 409


async def test_expired_link_is_410(client, register):
    headers, _ = await register()
    _, link = await _shared_note(client, headers, expires_in_ms=1)

    await asyncio.sleep(0.05)
    response = await client.get(f"/shared/{link['share_id']}")

    assert response.status_code == 410
    assert response.json()["success"] is False


async def test_invalid_expiry_rejected(client, register):
    headers, _ = await register()
    response = await client.post("/notes", json={"title": "T", "content": "C"}, headers=headers)
    note_id = response.json()["data"]["id"]

    response = await client.post(f"/notes/{note_id}/share", json={"expires_in_ms": 0}, headers=headers)

    assert response.status_code == 400


async def test_out_of_range_expiry_rejected(client, register):
    headers, _ = await register()
    note, _ = await _shared_note(client, headers)
    url = f"/notes/{note['id']}/share"

    response = await client.post(url, json={"expires_in_ms": 10**18}, headers=headers)
    assert response.status_code == 400

    response = await client.put(url, json={"expires_in_ms": 10**18}, headers=headers)
    assert response.status_code == 400


async def test_non_author_cannot_share(client, register):
    author_headers, _ = await register()
    other_headers, _ = await register()
    response = await client.post("/notes", json={"title": "T", "content": "C"}, headers=author_headers)
    note_id = response.json()["data"]["id"]

    response = await client.post(f"/notes/{note_id}/share", json={}, headers=other_headers)

    assert response.status_code == 404


async def test_shared_listing(client, register):
    headers, _ = await register()
    note, _ = await _shared_note(client, headers)
    await client.post("/notes", json={"title": "Private", "content": "C"}, headers=headers)

    response = await client.get("/notes/shared", headers=headers)

    notes = response.json()["data"]["notes"]
    assert [n["id"] for n in notes] == [note["id"]]
    assert notes[0]["is_shared"] is True
