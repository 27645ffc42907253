from concurrent.futures import ThreadPoolExecutor

import pytest

from conftest import make_city, make_profile
from database import get_db
from errors import ConstraintViolation, NotFound
from store import Store
from voting import POST_VOTES, VLOG_REACTIONS, current_choice, reconcile_counters, toggle


@pytest.fixture
def post(client, register, city):
    _, headers = register("author")
    response = client.post("/posts/", json={
        "city_id": city,
        "title": "Hidden viewpoint",
        "content": "Go up the stairs behind the church",
        "flair": "hidden_gem",
    }, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def _score(client, profile_id):
    return client.get(f"/profiles/{profile_id}").json()["score"]


def test_up_up_down_leaves_a_single_down_vote(client, register, post):
    _, headers = register("voter")
    url = f"/posts/{post['id']}/vote"

    first = client.post(url, json={"vote_type": "up"}, headers=headers).json()
    assert (first["user_vote"], first["upvotes"], first["downvotes"]) == ("up", 1, 0)

    second = client.post(url, json={"vote_type": "up"}, headers=headers).json()
    assert (second["user_vote"], second["upvotes"], second["downvotes"]) == (None, 0, 0)

    third = client.post(url, json={"vote_type": "down"}, headers=headers).json()
    assert (third["user_vote"], third["upvotes"], third["downvotes"]) == ("down", 0, 1)

    with get_db() as conn:
        assert conn.execute("SELECT COUNT(*) FROM post_votes WHERE post_id = ?", (post["id"],)).fetchone()[0] == 1


def test_switching_vote_moves_the_counter(client, register, post):
    _, headers = register("voter")
    url = f"/posts/{post['id']}/vote"
    client.post(url, json={"vote_type": "up"}, headers=headers)
    switched = client.post(url, json={"vote_type": "down"}, headers=headers).json()
    assert (switched["upvotes"], switched["downvotes"]) == (0, 1)
    assert client.get(url, headers=headers).json()["user_vote"] == "down"


def test_votes_from_several_users_and_author_score(client, register, post):
    voters = [register(f"voter{i}")[1] for i in range(3)]
    url = f"/posts/{post['id']}/vote"
    client.post(url, json={"vote_type": "up"}, headers=voters[0])
    client.post(url, json={"vote_type": "up"}, headers=voters[1])
    result = client.post(url, json={"vote_type": "down"}, headers=voters[2]).json()
    assert (result["upvotes"], result["downvotes"]) == (2, 1)
    assert _score(client, post["author_id"]) == 1

    client.post(url, json={"vote_type": "up"}, headers=voters[0])
    assert _score(client, post["author_id"]) == 0


def test_listing_shows_own_vote(client, register, post, city):
    _, headers = register("voter")
    client.post(f"/posts/{post['id']}/vote", json={"vote_type": "down"}, headers=headers)
    listed = client.get(f"/posts/?city_id={city}", headers=headers).json()
    assert listed[0]["user_vote"] == "down"
    assert client.get(f"/posts/?city_id={city}").json()[0]["user_vote"] is None


def test_concurrent_toggles_keep_counters_exact(client, register, post):
    url = f"/posts/{post['id']}/vote"
    voters = [register(f"crowd{i}")[1] for i in range(12)]

    def up_off_up(headers):
        return [client.post(url, json={"vote_type": "up"}, headers=headers).status_code for _ in range(3)]

    with ThreadPoolExecutor(max_workers=6) as pool:
        statuses = [s for result in pool.map(up_off_up, voters) for s in result]

    assert set(statuses) == {200}
    with get_db() as conn:
        stored = conn.execute("SELECT upvotes, downvotes FROM posts WHERE id = ?", (post["id"],)).fetchone()
        rows = conn.execute(
            "SELECT COUNT(*) FROM post_votes WHERE post_id = ? AND vote_type = 'up'", (post["id"],)
        ).fetchone()[0]
    assert (stored[0], stored[1]) == (12, 0)
    assert rows == 12


def test_vote_on_missing_post_is_not_found(client, register):
    _, headers = register("voter")
    response = client.post("/posts/nope/vote", json={"vote_type": "up"}, headers=headers)
    assert response.status_code == 404


def test_vote_requires_authentication(client, post):
    assert client.post(f"/posts/{post['id']}/vote", json={"vote_type": "up"}).status_code == 401


def test_toggle_rejects_unknown_choice():
    voter = make_profile("voter")
    with get_db() as conn:
        with pytest.raises(ConstraintViolation):
            toggle(Store(conn, voter), POST_VOTES, "any", "sideways")
        with pytest.raises(NotFound):
            toggle(Store(conn, voter), POST_VOTES, "missing", "up")


def test_vlog_reactions_toggle():
    owner = make_profile("filmmaker")
    fan = make_profile("fan")
    with get_db() as conn:
        vlog = Store(conn, owner).insert("travel_vlogs", {
            "title": "Tram 28",
            "video_url": "https://videos.example.com/tram.mp4",
            "user_id": owner,
            "city_id": make_city(),
        })
        store = Store(conn, fan)
        assert toggle(store, VLOG_REACTIONS, vlog["id"], "like").counts == {"like_count": 1, "dislike_count": 0}
        result = toggle(store, VLOG_REACTIONS, vlog["id"], "dislike")
        assert result.state == "dislike"
        assert result.counts == {"like_count": 0, "dislike_count": 1}
        result = toggle(store, VLOG_REACTIONS, vlog["id"], "dislike")
        assert result.state is None
        assert result.counts == {"like_count": 0, "dislike_count": 0}
        assert current_choice(store, VLOG_REACTIONS, vlog["id"]) is None


def test_reconcile_repairs_drifted_counters(client, register, post):
    _, headers = register("voter")
    client.post(f"/posts/{post['id']}/vote", json={"vote_type": "up"}, headers=headers)
    with get_db() as conn:
        conn.execute("UPDATE posts SET upvotes = 7, downvotes = 3 WHERE id = ?", (post["id"],))
        conn.execute("UPDATE profiles SET score = 42 WHERE id = ?", (post["author_id"],))
        conn.commit()

    with get_db() as conn:
        assert reconcile_counters(conn) == 2
        conn.commit()
        row = conn.execute("SELECT upvotes, downvotes FROM posts WHERE id = ?", (post["id"],)).fetchone()
        assert tuple(row) == (1, 0)
    assert _score(client, post["author_id"]) == 1

    with get_db() as conn:
        assert reconcile_counters(conn) == 0
