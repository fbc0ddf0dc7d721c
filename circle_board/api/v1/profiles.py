# circle_board/api/v1/profiles.py

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile

from ...api.deps import get_gateway, get_member_id, get_storage
from ...config import settings
from ...gateway import ObjectStorage, SqlCollectionGateway
from ...schemas.profile import AvatarUploadOut, ProfileForm, ProfileListOut, ProfileOut
from ...views.filters import ALL_PARTS
from ...views.profile_store import ProfileStoreView

router = APIRouter(prefix="/profiles", tags=["profiles"])

MAX_AVATAR_BYTES = 5 * 1024 * 1024


def _view(
    member_id: str,
    gateway: SqlCollectionGateway,
    storage: ObjectStorage | None = None,
    confirm: bool | None = None,
) -> ProfileStoreView:
    return ProfileStoreView(
        gateway,
        member_id,
        storage=storage,
        confirm=None if confirm is None else (lambda message: confirm),
        use_soft_delete=settings.profile_soft_delete,
        authenticated=True,
    )


@router.get("", response_model=ProfileListOut)
def list_profiles(
    generation: str = "",
    part: str = ALL_PARTS,
    member_id: str = Depends(get_member_id),
    gateway: SqlCollectionGateway = Depends(get_gateway),
):
    """みんなのプロフィール（期・パートで絞り込み）"""
    view = _view(member_id, gateway)
    view.fetch_all()
    return ProfileListOut(
        my_id=member_id,
        my_deleted=view.my_deleted,
        profiles=view.visible(generation.strip(), part),
    )


@router.get("/me/edit", response_model=ProfileForm)
def get_my_form(
    member_id: str = Depends(get_member_id),
    gateway: SqlCollectionGateway = Depends(get_gateway),
):
    """編集フォームの初期値。まだ保存していなければ空のフォーム"""
    view = _view(member_id, gateway)
    view.fetch_all()
    mine = view.my_profile()
    if mine is None:
        return view.form
    return view.start_edit(mine)


@router.put("/me", response_model=ProfileOut)
def save_my_profile(
    data: ProfileForm,
    member_id: str = Depends(get_member_id),
    gateway: SqlCollectionGateway = Depends(get_gateway),
):
    """全項目で上書き保存（論理削除中なら復元も兼ねる）"""
    view = _view(member_id, gateway)
    view.form = data
    return view.save()


@router.delete("/me", status_code=204)
def delete_my_profile(
    confirm: bool = False,
    member_id: str = Depends(get_member_id),
    gateway: SqlCollectionGateway = Depends(get_gateway),
):
    view = _view(member_id, gateway, confirm=confirm)
    view.fetch_all()
    if view.my_profile() is None or view.my_deleted:
        raise HTTPException(status_code=404, detail="Profile not found")

    if not view.delete(member_id):
        raise HTTPException(status_code=400, detail="削除するには confirm=true を指定してください")
    return


@router.post("/me/restore", response_model=ProfileOut)
def restore_my_profile(
    member_id: str = Depends(get_member_id),
    gateway: SqlCollectionGateway = Depends(get_gateway),
):
    view = _view(member_id, gateway)
    view.restore()
    mine = view.my_profile()
    if mine is None:
        raise HTTPException(status_code=404, detail="Profile not found")
    return mine


@router.post("/me/avatar", response_model=AvatarUploadOut)
def upload_my_avatar(
    file: UploadFile = File(...),
    member_id: str = Depends(get_member_id),
    gateway: SqlCollectionGateway = Depends(get_gateway),
    storage: ObjectStorage = Depends(get_storage),
):
    """
    画像を保存して URL を返すだけ。
    プロフィールへの反映は、返した URL を avatar_url に入れて PUT /me する。
    """
    if not file.filename:
        raise HTTPException(status_code=400, detail="Missing filename")
    if file.content_type and not file.content_type.startswith("image/"):
        raise HTTPException(status_code=400, detail="画像ファイルを選択してください")
    contents = file.file.read()
    if len(contents) > MAX_AVATAR_BYTES:
        raise HTTPException(status_code=400, detail="File size exceeds 5MB limit")

    view = _view(member_id, gateway, storage=storage)
    url = view.upload_avatar(file.filename, contents, file.content_type)
    return AvatarUploadOut(avatar_url=url)


@router.get("/{profile_id}", response_model=ProfileOut)
def get_profile(
    profile_id: str,
    member_id: str = Depends(get_member_id),
    gateway: SqlCollectionGateway = Depends(get_gateway),
):
    view = _view(member_id, gateway)
    view.fetch_all()
    profile = next((p for p in view.visible() if p["id"] == profile_id), None)
    # 論理削除中のプロフィールも 404
    if profile is None:
        raise HTTPException(status_code=404, detail="Profile not found")
    return profile
