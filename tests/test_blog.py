from datetime import datetime

from bson import ObjectId


def test_missing_excerpt_is_named(client):
    resp = client.post("/api/blog", json={"title": "T", "slug": "t", "content": "c"})
    assert resp.status_code == 400
    assert resp.json()["missing"] == ["excerpt"]
    assert "excerpt" in resp.json()["details"]


def test_create_defaults(make_post):
    post = make_post(tags="oops")
    assert post["featured"] is False
    assert post["published"] is False
    assert post["addToHome"] is False
    assert post["tags"] == []
    assert post["publishedAt"] is None
    assert post["readTime"] == "5 min read"


def test_published_at_follows_the_request(client, make_post):
    post = make_post(published=True)
    assert post["publishedAt"] is not None

    resp = client.put(f"/api/blog/{post['slug']}", json={"title": "Edited"})
    assert resp.status_code == 200
    assert resp.json()["published"] is False
    assert resp.json()["publishedAt"] is None


def test_list_newest_first(client, make_post):
    make_post(slug="first", title="first")
    make_post(slug="second", title="second")
    titles = [p["title"] for p in client.get("/api/blog").json()]
    assert titles == ["second", "first"]


def test_blogs_alias_shares_the_collection(client, make_post):
    post = make_post()
    resp = client.get(f"/api/blogs/{post['_id']}")
    assert resp.status_code == 200
    assert resp.json() == client.get("/api/blog/slug/post").json()


def test_toggle_rejects_unknown_property(client, make_post):
    post = make_post()
    resp = client.post("/api/blog/toggle", json={"id": post["_id"], "property": "notAllowed"})
    assert resp.status_code == 400
    assert "featured, published, addToHome" in resp.json()["error"]


def test_toggle_featured(client, make_post):
    post = make_post()
    resp = client.post("/api/blog/toggle", json={"id": post["_id"], "property": "featured"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["post"]["featured"] is True
    assert body["post"]["published"] is False


def test_toggle_twice_restores_value(client, make_post):
    post = make_post()
    stamps = [datetime.fromisoformat(post["updatedAt"])]
    for _ in range(2):
        resp = client.post("/api/blog/toggle", json={"id": post["_id"], "property": "published"})
        assert resp.status_code == 200
        stamps.append(datetime.fromisoformat(resp.json()["post"]["updatedAt"]))
    assert resp.json()["post"]["published"] is False
    assert stamps[0] < stamps[1] < stamps[2]


def test_toggle_errors(client):
    assert client.post("/api/blog/toggle", json={"property": "featured"}).status_code == 400
    assert client.post("/api/blog/toggle", json={"id": "bad", "property": "featured"}).status_code == 400
    resp = client.post("/api/blog/toggle", json={"id": str(ObjectId()), "property": "addToHome"})
    assert resp.status_code == 404


def test_create_stamps_date(client, make_post):
    post = make_post()
    assert datetime.fromisoformat(post["date"])

    kept = make_post(slug="dated", date="2023-01-02")
    assert kept["date"] == "2023-01-02"

    upserted = client.post(
        "/api/blog",
        json={"_id": str(ObjectId()), "title": "T", "slug": "u", "excerpt": "e", "content": "c", "date": ""},
    )
    assert upserted.status_code == 201
    assert upserted.json()["date"]


def test_reads_legacy_posts(client, db):
    db["blogposts"].insert_one({"title": "Legacy", "slug": "legacy", "tags": "a,b", "published": "yes"})
    resp = client.get("/api/blog")
    assert resp.status_code == 200
    assert [p["slug"] for p in resp.json()] == ["legacy"]
    assert client.get("/api/blog/slug/legacy").json()["title"] == "Legacy"
