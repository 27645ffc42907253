from database import get_db


def test_reconcile_requires_admin(client, register):
    _, headers = register("regular")
    assert client.post("/admin/reconcile-counters", headers=headers).status_code == 403


def test_reconcile_endpoint(client, register, city):
    _, admin = register("boss", email="admin@example.com")
    assert client.post("/admin/reconcile-counters", headers=admin).json() == {"corrected": 0}

    with get_db() as conn:
        conn.execute("UPDATE profiles SET score = 5")
        conn.commit()
    # boss and the city creator drifted
    assert client.post("/admin/reconcile-counters", headers=admin).json() == {"corrected": 2}
