def test_all_sections_listed_even_when_empty(client, city):
    sections = client.get(f"/cities/{city}/wiki/").json()
    assert [s["section"] for s in sections] == [
        "best_time_to_visit", "safety", "most_efficient_local_transport", "question_of_the_week",
    ]
    assert all(s["id"] is None and s["content"] == "" for s in sections)


def test_section_owner_edits(client, register, city):
    _, author = register("author")
    _, other = register("other")
    url = f"/cities/{city}/wiki/safety"
    created = client.put(url, json={"content": "Watch for pickpockets on tram 28"}, headers=author)
    assert created.status_code == 200, created.text
    assert client.put(url, json={"content": "Vandalised"}, headers=other).status_code == 403
    edited = client.put(url, json={"content": "Watch your bag on tram 28"}, headers=author).json()
    assert edited["content"] == "Watch your bag on tram 28"
    assert edited["id"] == created.json()["id"]


def test_poll_votes_are_tallied(client, register, city):
    _, author = register("author")
    url = f"/cities/{city}/wiki/question_of_the_week"
    entry = client.put(url, json={
        "content": "Weekly question",
        "poll_question": "Best pastry?",
        "poll_answers": ["Pastel de nata", "Bola de Berlim"],
    }, headers=author).json()
    assert entry["poll_votes"] == {"Pastel de nata": 0, "Bola de Berlim": 0}

    voters = [register(f"voter{i}")[1] for i in range(3)]
    for headers in voters[:2]:
        client.post(f"{url}/poll", json={"choice": "Pastel de nata"}, headers=headers)
    result = client.post(f"{url}/poll", json={"choice": "Bola de Berlim"}, headers=voters[2]).json()
    assert result["poll_votes"] == {"Pastel de nata": 2, "Bola de Berlim": 1}


def test_poll_vote_validation(client, register, city):
    _, author = register("author")
    url = f"/cities/{city}/wiki/question_of_the_week"
    assert client.post(f"{url}/poll", json={"choice": "x"}, headers=author).status_code == 404
    client.put(url, json={"poll_question": "Beach?", "poll_answers": ["Cascais", "Caparica"]}, headers=author)
    assert client.post(f"{url}/poll", json={"choice": "Nazare"}, headers=author).status_code == 409
    assert client.post(f"{url}/poll", json={"choice": "Cascais"}).status_code == 401


def test_poll_answers_need_a_question(client, register, city):
    _, author = register("author")
    response = client.put(
        f"/cities/{city}/wiki/safety",
        json={"poll_answers": ["yes", "no"]},
        headers=author,
    )
    assert response.status_code == 422


def test_editing_a_poll_keeps_its_tally(client, register, city):
    _, author = register("author")
    _, voter = register("voter")
    url = f"/cities/{city}/wiki/question_of_the_week"
    poll = {"poll_question": "Tram or tuk-tuk?", "poll_answers": ["tram", "tuk-tuk"]}
    client.put(url, json={"content": "Getting around", **poll}, headers=author)
    client.post(f"{url}/poll", json={"choice": "tram"}, headers=voter)

    edited = client.put(url, json={"content": "Getting around Alfama", **poll}, headers=author).json()
    assert edited["content"] == "Getting around Alfama"
    assert edited["poll_votes"] == {"tram": 1, "tuk-tuk": 0}

    extended = client.put(url, json={**poll, "poll_answers": ["tram", "walking"]}, headers=author).json()
    assert extended["poll_votes"] == {"tram": 1, "walking": 0}
