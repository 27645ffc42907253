import os

from config import settings


PNG = b"\x89PNG\r\n\x1a\n" + b"0" * 64


def _upload_image(client, headers, name="photo.png"):
    response = client.post("/uploads/images", files={"file": (name, PNG, "image/png")}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["url"]


def test_travel_plan_lifecycle(client, register, city):
    owner, headers = register("planner")
    images = [_upload_image(client, headers, f"{i}.png") for i in range(2)]
    plan = client.post("/travel-plans/", json={
        "city_id": city,
        "title": "Three days in Lisbon",
        "start_date": "2030-04-01",
        "end_date": "2030-04-03",
        "images": images,
    }, headers=headers)
    assert plan.status_code == 201, plan.text
    plan = plan.json()
    assert plan["images"] == images

    _, friend = register("friend")
    client.post(f"/travel-plans/{plan['id']}/comments", json={"content": "Try Sintra"}, headers=friend)
    detail = client.get(f"/travel-plans/{plan['id']}").json()
    assert detail["comment_count"] == 1
    assert detail["comments"][0]["author_username"] == "friend"

    updated = client.put(f"/travel-plans/{plan['id']}", json={"images": images[:1]}, headers=headers).json()
    assert updated["images"] == images[:1]
    removed = images[1].split("/cdn/images/")[1]
    assert not os.path.exists(os.path.join(settings.upload_folder, "images", removed))

    assert client.get("/travel-plans/", params={"city_id": city}).json()[0]["id"] == plan["id"]
    assert client.delete(f"/travel-plans/{plan['id']}", headers=friend).status_code == 403
    assert client.delete(f"/travel-plans/{plan['id']}", headers=headers).status_code == 204


def test_travel_plan_dates_must_be_ordered(client, register, city):
    _, headers = register("planner")
    response = client.post("/travel-plans/", json={
        "city_id": city, "title": "Backwards", "start_date": "2030-04-03", "end_date": "2030-04-01",
    }, headers=headers)
    assert response.status_code == 422

    plan = client.post("/travel-plans/", json={
        "city_id": city, "title": "Forwards", "start_date": "2030-04-01", "end_date": "2030-04-03",
    }, headers=headers).json()
    # the merged row is checked by the table constraint
    response = client.put(f"/travel-plans/{plan['id']}", json={"end_date": "2030-03-01"}, headers=headers)
    assert response.status_code == 409


def test_cannot_reference_someone_elses_upload(client, register, city):
    _, alice = register("alice")
    _, bob = register("bob")
    url = _upload_image(client, alice)
    response = client.post("/posts/", json={
        "city_id": city, "title": "Borrowed photo", "content": "...", "flair": "tip", "image_url": url,
    }, headers=bob)
    assert response.status_code == 403


def test_vlog_upload_reactions_and_comments(client, register, city):
    owner, headers = register("filmmaker")
    response = client.post(
        "/vlogs/",
        data={"title": "Tram 28", "city_id": city},
        files={
            "video": ("tram.mp4", b"\x00\x00\x00\x18ftypmp42", "video/mp4"),
            "thumbnail": ("tram.png", PNG, "image/png"),
        },
        headers=headers,
    )
    assert response.status_code == 201, response.text
    vlog = response.json()
    assert vlog["video_url"].startswith(f"/cdn/videos/{owner}/")
    assert client.get(vlog["video_url"]).content == b"\x00\x00\x00\x18ftypmp42"

    _, fan = register("fan")
    reacted = client.post(f"/vlogs/{vlog['id']}/react", json={"reaction_type": "like"}, headers=fan).json()
    assert (reacted["user_reaction"], reacted["like_count"]) == ("like", 1)
    client.post(f"/vlogs/{vlog['id']}/comments", json={"content": "Great shot"}, headers=fan)

    detail = client.get(f"/vlogs/{vlog['id']}", headers=fan).json()
    assert detail["user_reaction"] == "like"
    assert [c["content"] for c in detail["comments"]] == ["Great shot"]
    assert [v["id"] for v in client.get("/vlogs/", params={"city_id": city}).json()] == [vlog["id"]]

    assert client.delete(f"/vlogs/{vlog['id']}", headers=headers).status_code == 204
    assert client.get(vlog["video_url"]).status_code == 404


def test_vlog_needs_exactly_one_video_source(client, register):
    _, headers = register("filmmaker")
    assert client.post("/vlogs/", data={"title": "Nothing"}, headers=headers).status_code == 400


def test_vlog_for_unknown_city_stores_nothing(client, register):
    owner, headers = register("filmmaker")
    response = client.post(
        "/vlogs/",
        data={"title": "Lost", "city_id": "no-such-city"},
        files={"video": ("lost.mp4", b"data", "video/mp4")},
        headers=headers,
    )
    assert response.status_code == 404
    folder = os.path.join(settings.upload_folder, "videos", owner)
    assert not os.path.exists(folder) or os.listdir(folder) == []
