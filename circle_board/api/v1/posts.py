# circle_board/api/v1/posts.py

from fastapi import APIRouter, Depends, HTTPException

from ...api.deps import get_gateway, get_member_id
from ...errors import AuthorizationFailed
from ...gateway import SqlCollectionGateway
from ...schemas.board import BandPostOut, BoardForm, CommentCreate
from ...views.board_store import BoardStoreView

router = APIRouter(prefix="/posts", tags=["posts"])


def _post_out(view: BoardStoreView, post: dict) -> dict:
    return {
        **post,
        "like_count": view.like_count(post),
        "liked_by_me": view.is_liked(post),
        "comments": view.visible_comments(post),
    }


def _load_post(view: BoardStoreView, post_id: int) -> dict:
    view.fetch_all()
    post = view.find(post_id)
    if post is None:
        raise HTTPException(status_code=404, detail="Post not found")
    return post


# -----------------------------
# 投稿の一覧・作成・更新・削除
# -----------------------------

@router.get("", response_model=list[BandPostOut])
def list_posts(
    member_id: str = Depends(get_member_id),
    gateway: SqlCollectionGateway = Depends(get_gateway),
):
    view = BoardStoreView(gateway, member_id)
    return [_post_out(view, p) for p in view.fetch_all()]


@router.post("", response_model=BandPostOut)
def create_post(
    data: BoardForm,
    member_id: str = Depends(get_member_id),
    gateway: SqlCollectionGateway = Depends(get_gateway),
):
    view = BoardStoreView(gateway, member_id)
    view.form = data
    post_id = view.save()
    return _post_out(view, view.find(post_id))


@router.put("/{post_id}", response_model=BandPostOut)
def update_post(
    post_id: int,
    data: BoardForm,
    member_id: str = Depends(get_member_id),
    gateway: SqlCollectionGateway = Depends(get_gateway),
):
    view = BoardStoreView(gateway, member_id)
    view.start_edit(_load_post(view, post_id))
    view.form = data
    view.save()
    return _post_out(view, view.find(post_id))


@router.delete("/{post_id}", status_code=204)
def delete_post(
    post_id: int,
    confirm: bool = False,
    member_id: str = Depends(get_member_id),
    gateway: SqlCollectionGateway = Depends(get_gateway),
):
    view = BoardStoreView(gateway, member_id, confirm=lambda message: confirm)
    post = _load_post(view, post_id)
    if post["profile_id"] != member_id:
        raise AuthorizationFailed("自分の投稿以外は削除できません")
    if not view.delete(post_id):
        raise HTTPException(status_code=400, detail="削除するには confirm=true を指定してください")
    return


# -----------------------------
# いいね・コメント
# -----------------------------

@router.post("/{post_id}/like", response_model=BandPostOut)
def like_post(
    post_id: int,
    member_id: str = Depends(get_member_id),
    gateway: SqlCollectionGateway = Depends(get_gateway),
):
    view = BoardStoreView(gateway, member_id)
    _load_post(view, post_id)
    view.toggle_like(post_id, already_liked=False)
    return _post_out(view, view.find(post_id))


@router.delete("/{post_id}/like", response_model=BandPostOut)
def unlike_post(
    post_id: int,
    member_id: str = Depends(get_member_id),
    gateway: SqlCollectionGateway = Depends(get_gateway),
):
    view = BoardStoreView(gateway, member_id)
    _load_post(view, post_id)
    view.toggle_like(post_id, already_liked=True)
    return _post_out(view, view.find(post_id))


@router.post("/{post_id}/comments", response_model=BandPostOut)
def comment_on_post(
    post_id: int,
    data: CommentCreate,
    member_id: str = Depends(get_member_id),
    gateway: SqlCollectionGateway = Depends(get_gateway),
):
    view = BoardStoreView(gateway, member_id)
    _load_post(view, post_id)
    view.comment_inputs[post_id] = data.content
    view.comment(post_id)
    return _post_out(view, view.find(post_id))
