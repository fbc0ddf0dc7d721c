# circle_board/models/profile.py

from sqlalchemy import Column, String, Integer, Text, DateTime
from datetime import datetime

from ..db import Base

# 希望パートの選択肢（先頭が未設定）
PARTS = ("未設定", "Lead", "1st", "2nd", "3rd", "4th", "Bass", "Perc")
PART_UNSET = PARTS[0]

# 外部バンド意欲
GAIBU_IYOKU_CHOICES = ("あり", "なし")


class Profile(Base):
    __tablename__ = "profiles"

    # ログイン導入前は端末で生成したトークン、導入後は認証ユーザーの id
    id = Column(String, primary_key=True, index=True)
    username = Column(String, nullable=False)

    school_info = Column(Text, nullable=True)
    favorite_artists = Column(Text, nullable=True)
    band_image = Column(Text, nullable=True)
    line_name = Column(String, nullable=True)
    other_sns = Column(Text, nullable=True)
    remarks = Column(Text, nullable=True)
    vocal_range = Column(String, nullable=True)
    gaibu_iyoku = Column(String, nullable=True)  # 'あり' / 'なし'
    allergy = Column(Text, nullable=True)
    avatar_url = Column(String, nullable=True)
    generation = Column(Integer, nullable=True)

    # 数値として検証しない（自由入力）
    band_count = Column(String, nullable=True)
    kikaku_count = Column(String, nullable=True)
    current_regular = Column(String, nullable=True)
    current_kikaku = Column(String, nullable=True)

    part = Column(String, nullable=False, default=PART_UNSET)
    part2 = Column(String, nullable=False, default=PART_UNSET)
    part3 = Column(String, nullable=False, default=PART_UNSET)
    part4 = Column(String, nullable=False, default=PART_UNSET)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    # NULL 以外 = 論理削除中（NULL に戻せば復元）
    deleted_at = Column(DateTime, nullable=True)
