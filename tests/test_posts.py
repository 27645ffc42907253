import pytest


@pytest.fixture
def author(register):
    return register("author")


def _create(client, headers, city, **overrides):
    payload = {"city_id": city, "title": "Where to eat", "content": "Taberna da Rua", "flair": "food_spot"}
    payload.update(overrides)
    response = client.post("/posts/", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def test_posts_listed_newest_first_with_flair_filter(client, author, city):
    _, headers = author
    first = _create(client, headers, city)
    second = _create(client, headers, city, title="Any tips?", flair="question")

    listed = client.get("/posts/", params={"city_id": city}).json()
    assert [p["id"] for p in listed] == [second["id"], first["id"]]
    questions = client.get("/posts/", params={"city_id": city, "flair": "question"}).json()
    assert [p["id"] for p in questions] == [second["id"]]
    assert client.get("/posts/", params={"city_id": city, "flair": "rant"}).status_code == 422


def test_post_edit_and_delete_are_owner_only(client, register, author, city):
    _, headers = author
    _, other = register("other")
    post = _create(client, headers, city)

    assert client.put(f"/posts/{post['id']}", json={"title": "Changed"}, headers=other).status_code == 403
    assert client.delete(f"/posts/{post['id']}", headers=other).status_code == 403

    edited = client.put(f"/posts/{post['id']}", json={"title": "Where to eat well"}, headers=headers).json()
    assert edited["title"] == "Where to eat well"
    assert edited["author_username"] == "author"

    assert client.delete(f"/posts/{post['id']}", headers=headers).status_code == 204
    assert client.get(f"/posts/{post['id']}").status_code == 404


def test_comments(client, register, author, city):
    _, headers = author
    _, reader = register("reader")
    post = _create(client, headers, city)
    url = f"/comments/post/{post['id']}"

    comment = client.post(url, json={"content": "Thanks!"}, headers=reader).json()
    assert comment["author_username"] == "reader"
    detail = client.get(f"/posts/{post['id']}").json()
    assert detail["comment_count"] == 1
    assert detail["comments"][0]["content"] == "Thanks!"

    assert client.put(f"/comments/{comment['id']}", json={"content": "Edited"}, headers=headers).status_code == 403
    assert client.put(f"/comments/{comment['id']}", json={"content": "Edited"}, headers=reader).json()["content"] == "Edited"
    assert client.delete(f"/comments/{comment['id']}", headers=headers).status_code == 403
    assert client.delete(f"/comments/{comment['id']}", headers=reader).status_code == 204
    assert client.get(url).json() == []


def test_comment_on_missing_post(client, author):
    _, headers = author
    assert client.post("/comments/post/missing", json={"content": "hi"}, headers=headers).status_code == 404


def test_post_in_unknown_city(client, author):
    _, headers = author
    response = client.post("/posts/", json={
        "city_id": "nowhere", "title": "Lost", "content": "?", "flair": "tip",
    }, headers=headers)
    assert response.status_code == 404
