def test_profiles_sharing_a_city_match(client, register, city):
    u1, u1_headers = register("u1")
    u2, u2_headers = register("u2")
    _, u3_headers = register("u3")
    client.post(f"/cities/{city}/join", headers=u1_headers)
    client.post(f"/cities/{city}/join", headers=u2_headers)

    matches = client.get("/matches/", headers=u1_headers).json()
    assert [m["id"] for m in matches] == [u2]
    assert matches[0]["shared_city_ids"] == [city]

    assert client.get("/matches/", headers=u3_headers).json() == []


def test_matches_exclude_self_and_other_cities(client, register, city):
    _, admin_headers = register("planner")
    other = client.post("/cities/", json={"name": "Kyoto", "country": "Japan"}, headers=admin_headers).json()["id"]
    u1, u1_headers = register("u1")
    _, u2_headers = register("u2")
    u3, u3_headers = register("u3")
    client.post(f"/cities/{city}/join", headers=u1_headers)
    client.post(f"/cities/{other}/join", headers=u2_headers)
    client.post(f"/cities/{city}/join", headers=u3_headers)
    client.post(f"/cities/{other}/join", headers=u3_headers)

    assert [m["id"] for m in client.get("/matches/", headers=u1_headers).json()] == [u3]
    u3_matches = client.get("/matches/", headers=u3_headers).json()
    assert [m["username"] for m in u3_matches] == ["u1", "u2"]


def test_leaving_a_city_removes_the_match(client, register, city):
    _, u1_headers = register("u1")
    _, u2_headers = register("u2")
    client.post(f"/cities/{city}/join", headers=u1_headers)
    client.post(f"/cities/{city}/join", headers=u2_headers)
    client.post(f"/cities/{city}/leave", headers=u2_headers)
    assert client.get("/matches/", headers=u1_headers).json() == []
