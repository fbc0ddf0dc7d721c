# circle_board/schemas/profile.py

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from ..models.profile import PARTS, PART_UNSET

# フォームで文字列として扱う項目（None は空文字に寄せる）
TEXT_FIELDS = (
    "username",
    "school_info",
    "favorite_artists",
    "band_image",
    "line_name",
    "other_sns",
    "remarks",
    "vocal_range",
    "allergy",
    "avatar_url",
    "band_count",
    "kikaku_count",
    "current_regular",
    "current_kikaku",
)
PART_FIELDS = ("part", "part2", "part3", "part4")


class ProfileForm(BaseModel):
    """
    プロフィール編集フォームの状態をひとまとめにしたもの。
    save() はこれをそのままレコードに直列化するだけ。
    """

    username: str = ""
    school_info: str = ""
    favorite_artists: str = ""
    band_image: str = ""
    line_name: str = ""
    other_sns: str = ""
    remarks: str = ""
    vocal_range: str = ""
    gaibu_iyoku: Optional[Literal["あり", "なし"]] = None
    allergy: str = ""
    avatar_url: str = ""
    generation: Optional[int] = None

    band_count: str = ""
    kikaku_count: str = ""
    current_regular: str = ""
    current_kikaku: str = ""

    part: str = PART_UNSET
    part2: str = PART_UNSET
    part3: str = PART_UNSET
    part4: str = PART_UNSET

    model_config = ConfigDict(validate_assignment=True)

    @field_validator("generation", mode="before")
    @classmethod
    def _blank_generation_is_none(cls, v: Any):
        # 入力欄が空なら未設定
        if v is None or (isinstance(v, str) and not v.strip()):
            return None
        return v

    @field_validator("gaibu_iyoku", mode="before")
    @classmethod
    def _blank_gaibu_is_none(cls, v: Any):
        return v or None

    @field_validator(*TEXT_FIELDS, mode="before")
    @classmethod
    def _none_is_blank(cls, v: Any):
        if v is None:
            return ""
        # 回数系は数値で来ることもある
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator(*PART_FIELDS, mode="before")
    @classmethod
    def _check_part(cls, v: Any):
        if not v:
            return PART_UNSET
        if v not in PARTS:
            raise ValueError(f"part must be one of {', '.join(PARTS)}")
        return v

    @classmethod
    def load_from(cls, record: dict) -> "ProfileForm":
        """取得済みレコードからフォームを作る（知らない列は無視）"""
        return cls(**{k: record.get(k) for k in cls.model_fields if k in record})

    def reset(self) -> "ProfileForm":
        return type(self)()

    def to_record(self, member_id: str, now: datetime) -> dict:
        """全項目を書き出す。保存すると論理削除も解除される"""
        record = self.model_dump()
        record.update(id=member_id, updated_at=now, deleted_at=None)
        return record


class ProfileOut(BaseModel):
    """レスポンス用"""
    id: str
    username: str
    school_info: Optional[str] = None
    favorite_artists: Optional[str] = None
    band_image: Optional[str] = None
    line_name: Optional[str] = None
    other_sns: Optional[str] = None
    remarks: Optional[str] = None
    vocal_range: Optional[str] = None
    gaibu_iyoku: Optional[str] = None
    allergy: Optional[str] = None
    avatar_url: Optional[str] = None
    generation: Optional[int] = None
    band_count: Optional[str] = None
    kikaku_count: Optional[str] = None
    current_regular: Optional[str] = None
    current_kikaku: Optional[str] = None
    part: str = PART_UNSET
    part2: str = PART_UNSET
    part3: str = PART_UNSET
    part4: str = PART_UNSET
    updated_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProfileListOut(BaseModel):
    my_id: str
    my_deleted: bool
    profiles: list[ProfileOut]


class AvatarUploadOut(BaseModel):
    avatar_url: str
