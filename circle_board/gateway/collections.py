# circle_board/gateway/collections.py
"""
名前付きコレクション（テーブル）への CRUD を提供するゲートウェイ。

画面側（views）は ORM を直接触らず、ここを経由して
select / upsert / update / delete / insert だけを使う。
戻り値は常に dict（行）か dict のリストで、失敗は GatewayError。
"""
import logging
from collections.abc import Callable, Iterable, Iterator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import inspect as sa_inspect
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..db import SessionLocal
from ..models import BandPost, PostComment, PostLike, Profile
from .realtime import ChangeEvent, ChangeFeed, change_feed

logger = logging.getLogger(__name__)

# エラーコード（PostgreSQL の SQLSTATE に合わせている）
DUPLICATE_KEY = "23505"
CONSTRAINT_VIOLATION = "23000"
UNDEFINED_TABLE = "42P01"
UNDEFINED_COLUMN = "42703"
INTERNAL_ERROR = "XX000"

COLLECTIONS = {
    "profiles": Profile,
    "band_posts": BandPost,
    "post_likes": PostLike,
    "post_comments": PostComment,
}

Row = dict[str, Any]


class GatewayError(Exception):
    def __init__(self, message: str, code: str = INTERNAL_ERROR):
        super().__init__(message)
        self.message = message
        self.code = code

    @property
    def is_duplicate_key(self) -> bool:
        return self.code == DUPLICATE_KEY


def _include_tree(include: Iterable[str]) -> dict[str, dict]:
    """("comments", "comments.author") -> {"comments": {"author": {}}}"""
    tree: dict[str, dict] = {}
    for name in include:
        node = tree
        for part in name.split("."):
            node = node.setdefault(part, {})
    return tree


def row_to_dict(obj: Any, tree: dict[str, dict] | None = None) -> Row:
    mapper = sa_inspect(obj).mapper
    data = {attr.key: getattr(obj, attr.key) for attr in mapper.column_attrs}
    for name, sub in (tree or {}).items():
        value = getattr(obj, name)
        if value is None:
            data[name] = None
        elif isinstance(value, list):
            data[name] = [row_to_dict(v, sub) for v in value]
        else:
            data[name] = row_to_dict(value, sub)
    return data


def _translate(exc: SQLAlchemyError) -> GatewayError:
    if isinstance(exc, IntegrityError):
        text = str(exc.orig)
        if "UNIQUE" in text.upper() or "duplicate key" in text:
            return GatewayError(text, DUPLICATE_KEY)
        return GatewayError(text, CONSTRAINT_VIOLATION)
    return GatewayError(str(exc), INTERNAL_ERROR)


class SqlCollectionGateway:
    def __init__(
        self,
        session_factory: Callable[[], Session] = SessionLocal,
        feed: ChangeFeed | None = None,
    ):
        self._session_factory = session_factory
        self.feed = feed if feed is not None else change_feed

    # -----------------------------
    # 内部ヘルパー
    # -----------------------------

    @contextmanager
    def _session(self) -> Iterator[Session]:
        db = self._session_factory()
        try:
            yield db
        except SQLAlchemyError as e:
            db.rollback()
            err = _translate(e)
            logger.warning("gateway error [%s]: %s", err.code, err.message)
            raise err from e
        finally:
            db.close()

    def _model(self, table: str):
        model = COLLECTIONS.get(table)
        if model is None:
            raise GatewayError(f'relation "{table}" does not exist', UNDEFINED_TABLE)
        return model

    def _check_columns(self, model, names: Iterable[str]) -> None:
        columns = {attr.key for attr in sa_inspect(model).column_attrs}
        for name in names:
            if name not in columns:
                raise GatewayError(
                    f'column "{name}" of relation "{model.__tablename__}" does not exist',
                    UNDEFINED_COLUMN,
                )

    def _check_include(self, model, tree: dict[str, dict]) -> None:
        relationships = sa_inspect(model).relationships
        for name, sub in tree.items():
            if name not in relationships:
                raise GatewayError(
                    f'could not find a relationship between "{model.__tablename__}" and "{name}"',
                    UNDEFINED_TABLE,
                )
            self._check_include(relationships[name].mapper.class_, sub)

    def _primary_key(self, model, row: Row) -> tuple:
        pk_columns = sa_inspect(model).primary_key
        missing = [c.key for c in pk_columns if row.get(c.key) is None]
        if missing:
            raise GatewayError(
                f"primary key {', '.join(missing)} is required for upsert",
                CONSTRAINT_VIOLATION,
            )
        return tuple(row[c.key] for c in pk_columns)

    def _publish(self, table: str, event: str, rows: list[Row]) -> None:
        for row in rows:
            self.feed.publish(ChangeEvent(table=table, event=event, row=row))

    # -----------------------------
    # 公開 API
    # -----------------------------

    def select(
        self,
        table: str,
        order_by: str | None = None,
        descending: bool = True,
        include: Iterable[str] = (),
    ) -> list[Row]:
        """
        コレクションを全件取得する。
        order_by が同値の行は主キーで（同じ向きに）並べる。
        include は関連名（"comments.author" のようにドットでネスト可）。
        """
        model = self._model(table)
        tree = _include_tree(include)
        self._check_include(model, tree)

        order = []
        if order_by is not None:
            self._check_columns(model, [order_by])
            order.append(getattr(model, order_by))
        order.extend(sa_inspect(model).primary_key)
        order = [c.desc() if descending else c.asc() for c in order]

        with self._session() as db:
            objs = db.query(model).order_by(*order).all()
            return [row_to_dict(obj, tree) for obj in objs]

    def upsert(self, table: str, row: Row, ignore_duplicates: bool = False) -> Row:
        """
        主キーで insert-or-replace。
        ignore_duplicates=True の場合、既存行には触らずそのまま返す。
        """
        model = self._model(table)
        self._check_columns(model, row.keys())
        pk = self._primary_key(model, row)

        with self._session() as db:
            obj = db.get(model, pk if len(pk) > 1 else pk[0])
            if obj is not None and ignore_duplicates:
                return row_to_dict(obj)

            if obj is None:
                obj = model(**row)
                db.add(obj)
                event = "INSERT"
            else:
                for key, value in row.items():
                    setattr(obj, key, value)
                event = "UPDATE"
            db.commit()
            db.refresh(obj)
            saved = row_to_dict(obj)

        logger.info("upsert %s %s", table, pk)
        self._publish(table, event, [saved])
        return saved

    def update(self, table: str, values: Row, match: Row) -> int:
        """match に一致する行の一部の列だけを書き換える。戻り値は件数"""
        model = self._model(table)
        self._check_columns(model, values.keys())
        self._check_columns(model, match.keys())

        with self._session() as db:
            objs = db.query(model).filter_by(**match).all()
            for obj in objs:
                for key, value in values.items():
                    setattr(obj, key, value)
            db.commit()
            updated = [row_to_dict(obj) for obj in objs]

        logger.info("update %s where %s: %d row(s)", table, match, len(updated))
        self._publish(table, "UPDATE", updated)
        return len(updated)

    def delete(self, table: str, match: Row) -> int:
        """match に一致する行を削除する（複合キーなら列を並べて渡す）"""
        model = self._model(table)
        self._check_columns(model, match.keys())

        with self._session() as db:
            objs = db.query(model).filter_by(**match).all()
            deleted = [row_to_dict(obj) for obj in objs]
            for obj in objs:
                db.delete(obj)
            db.commit()

        logger.info("delete %s where %s: %d row(s)", table, match, len(deleted))
        self._publish(table, "DELETE", deleted)
        return len(deleted)

    def insert(self, table: str, row: Row) -> Row:
        """新規行を追加する。主キーを省略した場合はここで採番される"""
        model = self._model(table)
        self._check_columns(model, row.keys())

        with self._session() as db:
            obj = model(**row)
            db.add(obj)
            db.commit()
            db.refresh(obj)
            saved = row_to_dict(obj)

        logger.info("insert %s", table)
        self._publish(table, "INSERT", [saved])
        return saved
