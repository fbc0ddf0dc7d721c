#!/usr/bin/env python3
"""
起動中のサーバーに対して、登録 → プロフィール保存 → 募集投稿 → いいね/コメント
→ 削除/復元 までを一通り流す簡易スモークテスト。

    uvicorn circle_board.main:app --reload
    python scripts/smoke_flow.py
"""
import json
import sys
import time
from urllib import request, error
from urllib.parse import urlencode

BASE_URL = "http://127.0.0.1:8000"


def api(method, path, body=None, token=None):
    url = BASE_URL + path
    data = None
    headers = {}
    if body is not None:
        data = json.dumps(body).encode("utf-8")
        headers["Content-Type"] = "application/json"
    if token:
        headers["Authorization"] = f"Bearer {token}"
    req = request.Request(url, data=data, headers=headers, method=method)
    try:
        with request.urlopen(req, timeout=10) as resp:
            payload = resp.read().decode("utf-8")
            return resp.status, json.loads(payload) if payload else None
    except error.HTTPError as e:
        payload = e.read().decode("utf-8")
        try:
            return e.code, json.loads(payload)
        except ValueError:
            return e.code, {"detail": payload}
    except error.URLError as e:
        return 0, {"detail": str(e.reason)}


def must_ok(status, data, label):
    if status < 200 or status >= 300:
        raise RuntimeError(f"{label} failed: {status} {data}")
    return data


def sign_up_and_login(email, password="smoke-pass"):
    status, data = api("POST", "/api/auth/signup", {"email": email, "password": password})
    must_ok(status, data, f"signup {email}")
    status, data = api("POST", "/api/auth/login", {"email": email, "password": password})
    data = must_ok(status, data, f"login {email}")
    return data["access_token"], data["user_id"]


def save_profile(token, **fields):
    status, data = api("PUT", "/api/profiles/me", fields, token)
    return must_ok(status, data, "save profile")


def list_profiles(token, generation="", part="全パート"):
    query = urlencode({"generation": generation, "part": part})
    status, data = api("GET", f"/api/profiles?{query}", token=token)
    return must_ok(status, data, "list profiles")


def main():
    suffix = str(int(time.time()))
    alice, alice_id = sign_up_and_login(f"alice+{suffix}@example.com")
    bob, bob_id = sign_up_and_login(f"bob+{suffix}@example.com")

    save_profile(alice, username="Alice", generation=3, part="Lead")
    save_profile(bob, username="Bob", generation=5, part2="Lead")

    gen3 = {p["id"] for p in list_profiles(alice, generation="3")["profiles"]}
    assert alice_id in gen3 and bob_id not in gen3, gen3
    lead = {p["id"] for p in list_profiles(alice, part="Lead")["profiles"]}
    assert {alice_id, bob_id} <= lead, lead
    print("profiles: OK")

    status, post = api("POST", "/api/posts", {"theme": "合わせ練習", "target_parts": "Bass"}, alice)
    post = must_ok(status, post, "create post")
    status, post = api(
        "PUT",
        f"/api/posts/{post['id']}",
        {"theme": "合わせ練習", "target_parts": "Bass, Perc"},
        alice,
    )
    must_ok(status, post, "update post")

    status, liked = api("POST", f"/api/posts/{post['id']}/like", token=bob)
    liked = must_ok(status, liked, "like")
    assert liked["liked_by_me"], liked

    status, _ = api("POST", f"/api/posts/{post['id']}/comments", {"content": "参加したいです"}, bob)
    must_ok(status, _, "comment")
    status, posts = api("GET", "/api/posts", token=alice)
    posts = must_ok(status, posts, "list posts")
    mine = next(p for p in posts if p["id"] == post["id"])
    assert mine["target_parts"] == "Bass, Perc", mine
    assert [c["content"] for c in mine["comments"]] == ["参加したいです"], mine
    print("board: OK")

    status, _ = api("DELETE", "/api/profiles/me?confirm=true", token=bob)
    must_ok(status, _, "delete profile")
    ids = {p["id"] for p in list_profiles(alice)["profiles"]}
    assert bob_id not in ids, ids
    status, _ = api("POST", "/api/profiles/me/restore", token=bob)
    must_ok(status, _, "restore profile")
    print("delete/restore: OK")

    status, _ = api("DELETE", f"/api/posts/{post['id']}?confirm=true", token=alice)
    must_ok(status, _, "delete post")
    api("POST", "/api/auth/logout", token=alice)
    api("POST", "/api/auth/logout", token=bob)
    print("smoke flow finished")
    return 0


if __name__ == "__main__":
    try:
        sys.exit(main())
    except (RuntimeError, AssertionError) as e:
        print(f"FAILED: {e}")
        sys.exit(1)
