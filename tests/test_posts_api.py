"""
Tests for /api/v1/posts
"""
API = "/api/v1/posts"


def befriend(client, sender_headers, receiver, receiver_headers):
    response = client.post("/api/v1/friendships", json={"receiver_id": receiver["id"]}, headers=sender_headers)
    assert response.status_code == 201, response.text
    friendship_id = response.json()["id"]
    response = client.patch(
        f"/api/v1/friendships/{friendship_id}", json={"status": "accepted"}, headers=receiver_headers
    )
    assert response.status_code == 200, response.text
    return friendship_id


def test_create_and_read_post(client, user_headers):
    user, headers = user_headers("uma@mailbox.org")
    response = client.post(API, json={"content": "  hello world  ", "image_url": ""}, headers=headers)
    assert response.status_code == 201
    post = response.json()
    assert post["content"] == "hello world"
    assert post["image_url"] is None
    assert post["privacy"] == "public"
    assert post["user_id"] == user["id"]
    assert post["author"]["username"] == "uma@mailbox.org"

    response = client.get(f"{API}/{post['id']}")
    assert response.status_code == 200


def test_create_requires_token(client):
    response = client.post(API, json={"content": "anonymous"})
    assert response.status_code == 401


def test_blank_content_is_rejected(client, user_headers):
    _, headers = user_headers("vic@mailbox.org")
    response = client.post(API, json={"content": "   "}, headers=headers)
    assert response.status_code == 422


def test_posting_as_someone_else_is_forbidden(client, user_headers):
    victim, _ = user_headers("wes@mailbox.org")
    _, headers = user_headers("xena@mailbox.org")
    response = client.post(API, json={"content": "spoofed", "user_id": victim["id"]}, headers=headers)
    assert response.status_code == 403


def test_feed_is_newest_first_and_respects_privacy(client, user_headers):
    author, author_headers = user_headers("yara@mailbox.org")
    reader, reader_headers = user_headers("zed@mailbox.org")
    for content, privacy in [("one", "public"), ("two", "friends"), ("three", "private"), ("four", "public")]:
        client.post(API, json={"content": content, "privacy": privacy}, headers=author_headers)

    own = [p["content"] for p in client.get(API, headers=author_headers).json()]
    assert own == ["four", "three", "two", "one"]

    assert [p["content"] for p in client.get(API).json()] == ["four", "one"]
    assert [p["content"] for p in client.get(API, headers=reader_headers).json()] == ["four", "one"]

    befriend(client, reader_headers, author, author_headers)
    assert [p["content"] for p in client.get(API, headers=reader_headers).json()] == ["four", "two", "one"]


def test_feed_filters_by_author_and_paginates(client, user_headers):
    alice, alice_headers = user_headers("alice@mailbox.org")
    _, bob_headers = user_headers("bob@mailbox.org")
    for i in range(3):
        client.post(API, json={"content": f"alice {i}"}, headers=alice_headers)
    client.post(API, json={"content": "bob 0"}, headers=bob_headers)

    response = client.get(API, params={"user_id": alice["id"], "limit": 2})
    assert [p["content"] for p in response.json()] == ["alice 2", "alice 1"]
    response = client.get(API, params={"user_id": alice["id"], "limit": 2, "offset": 2})
    assert [p["content"] for p in response.json()] == ["alice 0"]


def test_hidden_post_reads_as_not_found(client, user_headers):
    _, owner_headers = user_headers("cora@mailbox.org")
    _, other_headers = user_headers("dan@mailbox.org")
    post = client.post(API, json={"content": "secret", "privacy": "private"}, headers=owner_headers).json()

    assert client.get(f"{API}/{post['id']}", headers=other_headers).status_code == 404
    assert client.get(f"{API}/{post['id']}").status_code == 404
    assert client.get(f"{API}/does-not-exist", headers=owner_headers).status_code == 404


def test_update_and_delete_own_post(client, user_headers):
    _, headers = user_headers("eve@mailbox.org")
    post = client.post(API, json={"content": "draft"}, headers=headers).json()

    response = client.patch(f"{API}/{post['id']}", json={"content": "final", "privacy": "friends"}, headers=headers)
    assert response.status_code == 200
    assert response.json()["content"] == "final"
    assert response.json()["privacy"] == "friends"

    response = client.patch(f"{API}/{post['id']}", json={"user_id": "someone"}, headers=headers)
    assert response.status_code == 422

    assert client.delete(f"{API}/{post['id']}", headers=headers).status_code == 204
    assert client.get(f"{API}/{post['id']}", headers=headers).status_code == 404


def test_cannot_modify_someone_elses_post(client, user_headers):
    _, owner_headers = user_headers("fay@mailbox.org")
    _, other_headers = user_headers("gus@mailbox.org")
    post = client.post(API, json={"content": "mine"}, headers=owner_headers).json()

    assert client.patch(f"{API}/{post['id']}", json={"content": "yours"}, headers=other_headers).status_code == 403
    assert client.delete(f"{API}/{post['id']}", headers=other_headers).status_code == 403
    assert client.get(f"{API}/{post['id']}").json()["content"] == "mine"
