# circle_board/views/filters.py

from collections.abc import Iterable

from ..schemas.profile import PART_FIELDS

# パート絞り込みの「指定なし」
ALL_PARTS = "全パート"


def _generation_text(profile: dict) -> str:
    generation = profile.get("generation")
    return "" if generation is None else str(generation)


def visible_profiles(
    all_profiles: Iterable[dict],
    my_id: str | None,
    my_deleted: bool,
    search_generation: str = "",
    search_part: str = ALL_PARTS,
) -> list[dict]:
    """
    一覧に表示するプロフィールを返す。並び順は all_profiles のまま。

    - 自分のレコードは、自分が論理削除中なら出さない
    - 他人のレコードは、論理削除中なら出さない
    - 期（generation）は文字列として完全一致
    - パートは part〜part4 のどれかに含まれていれば残す
    """
    result = []
    for p in all_profiles:
        if p.get("id") == my_id:
            if my_deleted:
                continue
        elif p.get("deleted_at") is not None:
            continue

        if search_generation and _generation_text(p) != search_generation:
            continue

        if search_part != ALL_PARTS and search_part not in (p.get(f) for f in PART_FIELDS):
            continue

        result.append(p)
    return result
