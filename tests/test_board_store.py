# tests/test_board_store.py

import pytest

from circle_board.errors import AuthorizationFailed, CollaboratorError, ValidationFailed
from circle_board.gateway import DUPLICATE_KEY, GatewayError, SqlCollectionGateway
from circle_board.views.board_store import EDITING, IDLE, BoardStoreView
from circle_board.views.profile_store import ProfileStoreView


def _member(gateway: SqlCollectionGateway, member_id: str, username: str) -> BoardStoreView:
    """プロフィールを作ってから掲示板ビューを返す"""
    profile = ProfileStoreView(gateway, member_id)
    profile.form.username = username
    profile.save()
    return BoardStoreView(gateway, member_id)


def _create_post(board: BoardStoreView, theme: str = "合わせ練習", target_parts: str = "Bass") -> int:
    board.form = board.form.reset().model_copy(update={"theme": theme, "target_parts": target_parts})
    return board.save()


def test_create_then_edit_keeps_single_row(gateway: SqlCollectionGateway):
    board = _member(gateway, "member-a", "Alice")
    post_id = _create_post(board)

    board.start_edit(board.find(post_id))
    assert board.state == EDITING
    board.form.target_parts = "Bass, Perc"
    board.save()

    assert board.state == IDLE
    assert len(board.posts) == 1
    assert board.posts[0]["id"] == post_id
    assert board.posts[0]["target_parts"] == "Bass, Perc"
    assert board.posts[0]["theme"] == "合わせ練習"


def test_save_requires_theme_and_target_parts(gateway: SqlCollectionGateway):
    board = _member(gateway, "member-a", "Alice")
    board.form.theme = "合わせ練習"
    with pytest.raises(ValidationFailed):
        board.save()
    board.form.theme = ""
    board.form.target_parts = "Bass"
    with pytest.raises(ValidationFailed):
        board.save()
    assert board.fetch_all() == []


def test_failed_insert_keeps_form(gateway: SqlCollectionGateway):
    """プロフィール未作成だと外部キーで弾かれる。フォームは残る"""
    board = BoardStoreView(gateway, "ghost")
    board.form.theme = "合わせ練習"
    board.form.target_parts = "Bass"

    with pytest.raises(CollaboratorError):
        board.save()
    assert board.form.theme == "合わせ練習"


def test_posts_are_newest_first_with_author(gateway: SqlCollectionGateway):
    board = _member(gateway, "member-a", "Alice")
    first = _create_post(board, theme="一つ目")
    second = _create_post(board, theme="二つ目")

    assert [p["id"] for p in board.posts] == [second, first]
    assert board.posts[0]["author"]["username"] == "Alice"
    assert board.posts[0]["likes"] == []
    assert board.posts[0]["comments"] == []


def test_cancel_edit_restores_empty_form(gateway: SqlCollectionGateway):
    board = _member(gateway, "member-a", "Alice")
    post_id = _create_post(board)
    board.start_edit(board.find(post_id))
    board.form.theme = "書きかけ"

    board.cancel_edit()

    assert board.state == IDLE
    assert board.form.theme == ""
    assert board.form.target_parts == ""
    assert board.fetch_all()[0]["theme"] == "合わせ練習"


def test_only_owner_can_edit_or_delete(gateway: SqlCollectionGateway):
    alice = _member(gateway, "member-a", "Alice")
    bob = _member(gateway, "member-b", "Bob")
    post_id = _create_post(alice)

    bob.fetch_all()
    with pytest.raises(AuthorizationFailed):
        bob.start_edit(bob.find(post_id))

    # 他人の投稿は削除条件に一致しないのでエラーになり、投稿は残る
    with pytest.raises(CollaboratorError):
        bob.delete(post_id)
    bob.fetch_all()
    assert [p["id"] for p in bob.posts] == [post_id]


def test_delete_with_confirmation(gateway: SqlCollectionGateway):
    alice = _member(gateway, "member-a", "Alice")
    post_id = _create_post(alice)

    alice.confirm = lambda message: False
    assert alice.delete(post_id) is False
    assert len(alice.fetch_all()) == 1

    alice.confirm = lambda message: True
    assert alice.delete(post_id) is True
    assert alice.posts == []


def test_like_then_unlike_round_trip(gateway: SqlCollectionGateway):
    alice = _member(gateway, "member-a", "Alice")
    bob = _member(gateway, "member-b", "Bob")
    post_id = _create_post(alice)
    alice.toggle_like(post_id, already_liked=False)
    before = alice.find(post_id)["likes"]

    bob.toggle_like(post_id, already_liked=False)
    post = bob.find(post_id)
    assert bob.is_liked(post)
    assert bob.like_count(post) == 2

    bob.toggle_like(post_id, already_liked=True)
    post = bob.find(post_id)
    assert not bob.is_liked(post)
    assert post["likes"] == before


def test_double_like_is_idempotent(gateway: SqlCollectionGateway):
    alice = _member(gateway, "member-a", "Alice")
    post_id = _create_post(alice)

    alice.toggle_like(post_id, already_liked=False)
    alice.toggle_like(post_id, already_liked=False)

    assert alice.like_count(alice.find(post_id)) == 1


def test_duplicate_key_on_like_is_not_an_error(gateway: SqlCollectionGateway):
    """別タブからの同時いいねで一意制約に当たっても成功扱い"""
    alice = _member(gateway, "member-a", "Alice")
    post_id = _create_post(alice)

    class RacingGateway:
        def __init__(self, inner):
            self.inner = inner

        def upsert(self, table, row, ignore_duplicates=False):
            self.inner.upsert(table, row)
            raise GatewayError("duplicate key value violates unique constraint", DUPLICATE_KEY)

        def __getattr__(self, name):
            return getattr(self.inner, name)

    racing = BoardStoreView(RacingGateway(gateway), "member-a")
    racing.toggle_like(post_id, already_liked=False)

    assert racing.like_count(racing.find(post_id)) == 1


def test_like_requires_member(gateway: SqlCollectionGateway):
    board = BoardStoreView(gateway, None)
    with pytest.raises(AuthorizationFailed):
        board.toggle_like(1, already_liked=False)


def test_comments_keep_submission_order_and_authors(gateway: SqlCollectionGateway):
    alice = _member(gateway, "member-a", "Alice")
    bob = _member(gateway, "member-b", "Bob")
    post_id = _create_post(alice)

    bob.comment_inputs[post_id] = "ベースやりたいです"
    bob.comment(post_id)
    assert post_id not in bob.comment_inputs
    alice.comment(post_id, "ぜひ！")

    comments = alice.find(post_id)["comments"]
    assert [c["content"] for c in comments] == ["ベースやりたいです", "ぜひ！"]
    assert [c["author"]["username"] for c in comments] == ["Bob", "Alice"]


def test_comment_visibility_is_owner_and_author_only(gateway: SqlCollectionGateway):
    alice = _member(gateway, "member-a", "Alice")
    bob = _member(gateway, "member-b", "Bob")
    carol = _member(gateway, "member-c", "Carol")
    post_id = _create_post(alice)
    bob.comment(post_id, "bob から")
    carol.comment(post_id, "carol から")

    for view in (alice, bob, carol):
        view.fetch_all()
    assert len(alice.visible_comments(alice.find(post_id))) == 2
    assert [c["content"] for c in bob.visible_comments(bob.find(post_id))] == ["bob から"]
    assert [c["content"] for c in carol.visible_comments(carol.find(post_id))] == ["carol から"]


def test_empty_comment_is_rejected(gateway: SqlCollectionGateway):
    alice = _member(gateway, "member-a", "Alice")
    post_id = _create_post(alice)
    with pytest.raises(ValidationFailed):
        alice.comment(post_id, "  ")


def test_fetch_failure_keeps_previous_list(gateway: SqlCollectionGateway):
    alice = _member(gateway, "member-a", "Alice")
    _create_post(alice)
    previous = alice.posts

    class DownGateway:
        def select(self, *args, **kwargs):
            raise GatewayError("network down")

    alice.gateway = DownGateway()
    assert alice.fetch_all() is previous
