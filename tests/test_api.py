from sqlalchemy.exc import OperationalError

from chirp.stores import TweetStore


def register(client, email="a@x.com", password="pw", username="a", name="A"):
    return client.post(
        "/api/users",
        json={"email": email, "password": password, "username": username, "name": name},
    )


def test_register_login_post_and_hashtag_scenario(client):
    resp = register(client)
    assert resp.status_code == 200
    user = resp.json()["user"]
    assert user["id"] > 0
    assert user["role"] == "user"
    assert "hash" not in user

    resp = client.post("/api/login", json={"email": "a@x.com", "password": "pw"})
    assert resp.status_code == 200
    assert resp.json()["user"] == user

    resp = client.post(f"/api/users/{user['id']}/tweets", json={"tweet": "hi #go"})
    assert resp.status_code == 200
    tweet = resp.json()["tweet"]
    assert tweet["id"] > 0
    assert tweet["created"]
    assert tweet["user_id"] == user["id"]

    resp = client.get("/api/tweets/hash/go")
    assert resp.status_code == 200
    assert [t["id"] for t in resp.json()["tweets"]] == [tweet["id"]]


def test_register_status_codes(client):
    assert register(client).status_code == 200
    assert register(client, username="other").status_code == 403
    assert register(client, email="b@x.com").status_code == 409
    assert register(client, name="").status_code == 400
    assert client.post("/api/users", json={"email": "c@x.com"}).status_code == 400


def test_login_failures_share_status_and_body(client):
    register(client)
    wrong = client.post("/api/login", json={"email": "a@x.com", "password": "bad"})
    unknown = client.post("/api/login", json={"email": "z@x.com", "password": "pw"})
    assert wrong.status_code == unknown.status_code == 403
    assert wrong.json() == unknown.json()
    assert client.post("/api/login", json={"email": "a@x.com"}).status_code == 400
    assert client.post(
        "/api/login", content=b"not json", headers={"content-type": "application/json"}
    ).status_code == 400


def test_user_profile(client):
    user = register(client).json()["user"]
    resp = client.get(f"/api/users/{user['id']}")
    assert resp.status_code == 200
    assert resp.json()["user"] == {"id": user["id"], "username": "a", "name": "A"}
    assert client.get("/api/users/999").status_code == 404
    assert client.get("/api/users/abc").status_code == 400


def test_user_feed_newest_first(client):
    user = register(client).json()["user"]
    for body in ["first", "second", "third"]:
        client.post(f"/api/users/{user['id']}/tweets", json={"tweet": body})
    resp = client.get(f"/api/users/{user['id']}/tweets")
    assert resp.status_code == 200
    tweets = resp.json()["tweets"]
    assert [t["tweet"] for t in tweets] == ["third", "second", "first"]
    assert tweets[0]["username"] == "a"
    assert client.get("/api/users/999/tweets").json() == {"tweets": []}


def test_post_tweet_errors(client):
    user = register(client).json()["user"]
    assert client.post(f"/api/users/{user['id']}/tweets", json={}).status_code == 400
    assert (
        client.post(f"/api/users/{user['id']}/tweets", json={"tweet": "x" * 281}).status_code
        == 400
    )
    assert client.post("/api/users/999/tweets", json={"tweet": "hello"}).status_code == 404


def test_keyword_search_endpoint(client):
    user = register(client).json()["user"]
    for i in range(5):
        client.post(f"/api/users/{user['id']}/tweets", json={"tweet": f"coffee break {i}"})
    client.post(f"/api/users/{user['id']}/tweets", json={"tweet": "tea time"})

    resp = client.get("/api/tweets/search", params={"keywords": "coffee", "limit": 2, "offset": 1})
    assert resp.status_code == 200
    assert [t["tweet"] for t in resp.json()["tweets"]] == ["coffee break 3", "coffee break 2"]

    assert client.get("/api/tweets/search").status_code == 400
    assert client.get("/api/tweets/search", params={"keywords": "coffee", "limit": "ten"}).status_code == 400
    assert client.get("/api/tweets/search", params={"keywords": "coffee", "offset": "-1"}).status_code == 400


def test_hashtag_endpoint_validation(client):
    assert client.get("/api/tweets/hash/go", params={"limit": "x"}).status_code == 400
    assert client.get("/api/tweets/hash/go%20lang").status_code == 400
    assert client.get("/api/tweets/hash/go").json() == {"tweets": []}


def test_store_failure_is_generic_500(client, monkeypatch):
    def broken_search(self, clause, limit, offset):
        raise OperationalError("SELECT", {}, Exception("secret detail"))

    monkeypatch.setattr(TweetStore, "search", broken_search)
    resp = client.get("/api/tweets/search", params={"keywords": "anything"})
    assert resp.status_code == 500
    assert "secret" not in resp.text


def test_metrics_endpoint(client):
    client.get("/api/tweets/hash/go")
    resp = client.get("/metrics/")
    assert resp.status_code == 200
    assert "api_requests_total" in resp.text


def test_out_of_range_paging_is_400(client):
    huge = str(10**20)
    assert client.get("/api/tweets/search", params={"keywords": "x", "offset": huge}).status_code == 400
    assert client.get("/api/tweets/hash/x", params={"offset": huge}).status_code == 400
    assert client.get("/api/tweets/hash/x", params={"limit": huge}).status_code == 400


def test_out_of_range_user_ids_are_400(client):
    huge = str(10**20)
    assert client.get(f"/api/users/{huge}").status_code == 400
    assert client.get(f"/api/users/{huge}/tweets").status_code == 400
    assert client.post(f"/api/users/{huge}/tweets", json={"tweet": "hello"}).status_code == 400
    assert client.get("/api/users/-1").status_code == 400
