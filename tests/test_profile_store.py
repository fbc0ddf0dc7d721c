# tests/test_profile_store.py

import pytest

from circle_board.errors import AuthorizationFailed, CollaboratorError, ValidationFailed
from circle_board.gateway import SqlCollectionGateway
from circle_board.views.profile_store import ProfileStoreView


class RecordingGateway:
    """呼ばれたメソッド名を記録しつつ本物のゲートウェイへ委譲する"""

    def __init__(self, inner: SqlCollectionGateway):
        self.inner = inner
        self.feed = inner.feed
        self.calls: list[str] = []

    def __getattr__(self, name):
        target = getattr(self.inner, name)

        def _wrapped(*args, **kwargs):
            self.calls.append(name)
            return target(*args, **kwargs)

        return _wrapped


def _save(view: ProfileStoreView, **fields) -> dict:
    view.form = view.form.reset().model_copy(update=fields)
    return view.save()


def test_save_with_empty_username_never_reaches_gateway(gateway: SqlCollectionGateway):
    recording = RecordingGateway(gateway)
    view = ProfileStoreView(recording, "member-a")
    view.form.username = "   "

    with pytest.raises(ValidationFailed):
        view.save()

    assert recording.calls == []


def test_save_without_member_id_is_rejected(gateway: SqlCollectionGateway):
    view = ProfileStoreView(gateway, None)
    view.form.username = "Alice"
    with pytest.raises(AuthorizationFailed):
        view.save()


def test_save_is_idempotent_per_member(gateway: SqlCollectionGateway):
    """同じ内容で 2 回保存してもレコードは 1 件で、中身は入力どおり"""
    view = ProfileStoreView(gateway, "member-a")
    fields = dict(username="Alice", generation=3, part="Lead", part2="Bass", band_count="2")

    _save(view, **fields)
    _save(view, **fields)

    assert len(view.profiles) == 1
    mine = view.my_profile()
    for key, value in fields.items():
        assert mine[key] == value
    assert mine["deleted_at"] is None


def test_save_writes_full_record(gateway: SqlCollectionGateway):
    """2 回目の保存で空にした項目は空で上書きされる（部分更新ではない）"""
    view = ProfileStoreView(gateway, "member-a")
    _save(view, username="Alice", remarks="よろしく", part="Lead")
    _save(view, username="Alice")

    mine = view.my_profile()
    assert mine["remarks"] == ""
    assert mine["part"] == "未設定"


def test_fetch_all_orders_by_most_recently_updated(gateway: SqlCollectionGateway):
    a = ProfileStoreView(gateway, "member-a")
    b = ProfileStoreView(gateway, "member-b")
    _save(a, username="A")
    _save(b, username="B")

    assert [p["id"] for p in a.fetch_all()] == ["member-b", "member-a"]

    _save(a, username="A2")
    assert [p["id"] for p in a.profiles] == ["member-a", "member-b"]


def test_soft_delete_and_restore(gateway: SqlCollectionGateway):
    view = ProfileStoreView(gateway, "member-a")
    other = ProfileStoreView(gateway, "member-b")
    _save(view, username="Alice")
    _save(other, username="Bob")

    assert view.soft_delete("member-a") is True
    assert view.my_deleted is True
    assert [p["id"] for p in view.visible()] == ["member-b"]

    # 他人からも見えない
    other.fetch_all()
    assert [p["id"] for p in other.visible()] == ["member-b"]

    view.restore()
    assert view.my_deleted is False
    assert {p["id"] for p in view.visible()} == {"member-a", "member-b"}


def test_save_clears_soft_delete(gateway: SqlCollectionGateway):
    view = ProfileStoreView(gateway, "member-a")
    _save(view, username="Alice")
    view.soft_delete("member-a")

    _save(view, username="Alice")
    assert view.my_deleted is False


def test_restore_when_never_deleted_is_noop(gateway: SqlCollectionGateway):
    view = ProfileStoreView(gateway, "member-a")
    before = _save(view, username="Alice")

    view.restore()

    after = view.my_profile()
    assert after["deleted_at"] is None
    assert after["username"] == before["username"]
    assert after["updated_at"] == before["updated_at"]


def test_delete_requires_confirmation(gateway: SqlCollectionGateway):
    recording = RecordingGateway(gateway)
    view = ProfileStoreView(recording, "member-a", confirm=lambda message: False)
    _save(view, username="Alice")
    recording.calls.clear()

    assert view.delete("member-a") is False
    assert recording.calls == []


def test_hard_delete_removes_record(gateway: SqlCollectionGateway):
    view = ProfileStoreView(gateway, "member-a", use_soft_delete=False)
    _save(view, username="Alice")

    assert view.delete("member-a") is True
    assert view.profiles == []


def test_cannot_delete_someone_else(gateway: SqlCollectionGateway):
    _save(ProfileStoreView(gateway, "member-b"), username="Bob")
    view = ProfileStoreView(gateway, "member-a")
    with pytest.raises(AuthorizationFailed):
        view.soft_delete("member-b")


def test_start_edit_loads_form(gateway: SqlCollectionGateway):
    view = ProfileStoreView(gateway, "member-a", authenticated=True)
    _save(view, username="Alice", generation=4, part3="Perc", gaibu_iyoku="あり")
    view.cancel_edit()
    assert view.form.username == ""

    form = view.start_edit(view.my_profile())
    assert form.username == "Alice"
    assert form.generation == 4
    assert form.part3 == "Perc"
    assert form.gaibu_iyoku == "あり"


def test_start_edit_of_other_record_is_guarded_when_authenticated(gateway: SqlCollectionGateway):
    bob = ProfileStoreView(gateway, "member-b")
    _save(bob, username="Bob")

    view = ProfileStoreView(gateway, "member-a", authenticated=True)
    view.fetch_all()
    with pytest.raises(AuthorizationFailed):
        view.start_edit(view.profiles[0])

    # ログイン導入前は誰のレコードでもフォームに写せる
    legacy = ProfileStoreView(gateway, "member-a")
    legacy.fetch_all()
    assert legacy.start_edit(legacy.profiles[0]).username == "Bob"


def test_upload_avatar_sets_form_url_only(gateway: SqlCollectionGateway, storage):
    view = ProfileStoreView(gateway, "member-a", storage=storage)
    _save(view, username="Alice")

    url = view.upload_avatar("face.PNG", b"\x89PNG...", "image/png")

    assert url.startswith("http://testserver/storage/avatars/member-a/")
    assert ".png?t=" in url
    assert view.form.avatar_url == url
    assert view.uploading is False
    # 保存するまではレコードに入らない
    view.fetch_all()
    assert view.my_profile()["avatar_url"] == ""

    path = url.split("/storage/avatars/", 1)[1].split("?", 1)[0]
    assert storage.exists("avatars", path)

    view.form.username = "Alice"
    view.save()
    assert view.my_profile()["avatar_url"] == url


def test_save_blocked_while_uploading(gateway: SqlCollectionGateway):
    view = ProfileStoreView(gateway, "member-a")
    view.form.username = "Alice"
    view.uploading = True
    with pytest.raises(ValidationFailed):
        view.save()


def test_collaborator_error_is_reported(gateway: SqlCollectionGateway):
    """upsert が失敗したら CollaboratorError で止まり、一覧はそのまま"""

    class BrokenGateway(RecordingGateway):
        def upsert(self, *args, **kwargs):
            from circle_board.gateway import GatewayError
            raise GatewayError("connection refused")

    view = ProfileStoreView(BrokenGateway(gateway), "member-a")
    view.form.username = "Alice"
    with pytest.raises(CollaboratorError) as exc:
        view.save()
    assert exc.value.message == "connection refused"
    assert view.profiles == []


def test_watch_refetches_on_change(gateway: SqlCollectionGateway):
    watcher = ProfileStoreView(gateway, "member-a")
    watcher.watch()

    _save(ProfileStoreView(gateway, "member-b"), username="Bob")
    assert [p["id"] for p in watcher.profiles] == ["member-b"]

    watcher.unwatch()
    _save(ProfileStoreView(gateway, "member-c"), username="Carol")
    assert [p["id"] for p in watcher.profiles] == ["member-b"]


def test_upload_avatar_twice_in_same_millisecond(gateway: SqlCollectionGateway, storage, monkeypatch):
    view = ProfileStoreView(gateway, "member-a", storage=storage)
    monkeypatch.setattr("circle_board.views.profile_store.time.time", lambda: 1792441712.001)

    first = view.upload_avatar("a.png", b"one", "image/png")
    second = view.upload_avatar("a.png", b"two", "image/png")

    assert first != second
    for url in (first, second):
        path = url.split("/storage/avatars/", 1)[1].split("?", 1)[0]
        assert storage.exists("avatars", path)
