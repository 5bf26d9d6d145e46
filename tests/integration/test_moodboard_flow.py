"""End-to-end moodboard scenarios across several endpoints."""

import pytest
from fastapi import status
from httpx import AsyncClient


@pytest.mark.integration
@pytest.mark.asyncio
class TestMoodboardFlow:
    """A designer builds a board, publishes it and another user discovers it."""

    async def test_build_publish_discover(
        self, client: AsyncClient, signup, make_board, upload_image, png_factory, storage
    ) -> None:
        designer, _ = await signup(name="Dana Designer", email="dana@example.com")
        visitor, _ = await signup(name="Vic Visitor", email="vic@example.com")

        # Build a private board with three images
        board = await make_board(designer, title="Coastal", description="Salt and sand")
        sand = await upload_image(designer, board["id"], data=png_factory(color=(230, 210, 160)))
        sea = await upload_image(designer, board["id"], data=png_factory(color=(20, 90, 160)))
        await upload_image(designer, board["id"], data=png_factory(color=(250, 250, 250)))

        hidden = await client.get(f"/api/boards/{board['id']}", headers=visitor)
        assert hidden.status_code == status.HTTP_403_FORBIDDEN

        # Arrange the canvas
        await client.post(
            "/api/images/reorder", json={"imageIds": [sea["id"], sand["id"]]}, headers=designer
        )
        arranged = await client.post(
            f"/api/boards/{board['id']}/arrange", json={}, headers=designer
        )
        assert len(arranged.json()["images"]) == 3

        # Publish with tags
        published = await client.put(
            f"/api/boards/{board['id']}",
            json={"isPublic": True, "tags": ["beach", "summer"]},
            headers=designer,
        )
        share_token = published.json()["board"]["share_token"]
        assert share_token

        # The visitor finds it, looks at it and likes it
        feed = await client.get("/api/boards/explore?search=dana", headers=visitor)
        assert [b["id"] for b in feed.json()["boards"]] == [board["id"]]
        assert feed.json()["boards"][0]["image_count"] == 3

        viewed = await client.get(f"/api/boards/{board['id']}", headers=visitor)
        assert viewed.json()["board"]["view_count"] == 1

        await client.post(f"/api/boards/{board['id']}/like", headers=visitor)
        liked = await client.get("/api/boards/explore?sort=liked&tag=beach", headers=visitor)
        assert liked.json()["boards"][0]["like_count"] == 1
        assert liked.json()["boards"][0]["is_liked"] is True

        popular = await client.get("/api/tags/popular")
        assert {"name": "#beach", "count": 1} in popular.json()["tags"]

        # Anyone with the board's share token can open it
        shared = await client.get(f"/api/shared/{share_token}")
        assert len(shared.json()["board"]["images"]) == 3

        # The visitor copies it; the copy shares files with the original
        copied = await client.post(f"/api/boards/{board['id']}/duplicate", headers=visitor)
        copy = copied.json()["board"]
        assert copy["is_public"] is False
        assert {i["public_id"] for i in copy["images"]} == {
            i["public_id"] for i in viewed.json()["board"]["images"]
        }

        stats = await client.get("/api/users/stats", headers=visitor)
        assert stats.json()["stats"] == {
            "totalBoards": 1,
            "totalImages": 3,
            "likedBoards": 1,
            "publicBoards": 0,
        }

        # Deleting the original keeps files the copy still uses
        deleted = await client.delete(f"/api/boards/{board['id']}", headers=designer)
        assert deleted.status_code == status.HTTP_200_OK
        for image in copy["images"]:
            assert (storage.root / image["public_id"]).exists()

        gone = await client.get(f"/api/shared/{share_token}")
        assert gone.status_code == status.HTTP_404_NOT_FOUND

        liked_boards = await client.get("/api/boards/liked", headers=visitor)
        assert liked_boards.json()["boards"] == []

        # Deleting the copy finally removes the files
        await client.delete(f"/api/boards/{copy['id']}", headers=visitor)
        for image in copy["images"]:
            assert not (storage.root / image["public_id"]).exists()

    async def test_private_share_link_flow(
        self, client: AsyncClient, signup, make_board, upload_image
    ) -> None:
        owner, _ = await signup()
        board = await make_board(owner, title="Client preview")
        await upload_image(owner, board["id"])

        link = (
            await client.post(
                f"/api/boards/{board['id']}/share-links",
                json={"password": "preview"},
                headers=owner,
            )
        ).json()

        locked = await client.get(f"/api/shared/{link['token']}")
        assert locked.status_code == status.HTTP_401_UNAUTHORIZED
        assert locked.json()["password_required"] is True

        unlocked = await client.post(
            f"/api/shared/{link['token']}/access", json={"password": "preview"}
        )
        assert unlocked.json()["board"]["title"] == "Client preview"
        assert len(unlocked.json()["board"]["images"]) == 1

        # The board stays private everywhere else
        explore = await client.get("/api/boards/explore")
        assert explore.json()["boards"] == []

        await client.delete(f"/api/shared/{link['token']}", headers=owner)
        revoked = await client.post(
            f"/api/shared/{link['token']}/access", json={"password": "preview"}
        )
        assert revoked.status_code == status.HTTP_404_NOT_FOUND
