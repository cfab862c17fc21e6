from datetime import datetime, timezone
import json

from sqlalchemy import delete, select
from sqlalchemy.engine import Engine

from playerhub.db.base import Base
from playerhub.db.models import StoredDocument, StoreMeta
from playerhub.db.session import build_engine, build_session_factory
from playerhub.db.store import COLLECTIONS, DB_VERSION, DocumentStore


class SqlDocumentStore(DocumentStore):
    """Keeps one row per document; every persist rewrites the collections in one transaction."""

    def __init__(self, database_url: str | None = None, engine: Engine | None = None) -> None:
        super().__init__()
        if engine is None:
            if not database_url:
                raise ValueError("database_url or engine is required")
            engine = build_engine(database_url)
        self.engine = engine
        self._session_factory = build_session_factory(engine)
        self._schema_ready = False

    def _ensure_schema(self) -> None:
        if self._schema_ready:
            return
        Base.metadata.create_all(bind=self.engine)
        self._schema_ready = True

    def _read(self) -> dict | None:
        self._ensure_schema()
        db = self._session_factory()
        try:
            version_row = db.get(StoreMeta, "version")
            rows = db.scalars(
                select(StoredDocument).order_by(StoredDocument.collection, StoredDocument.position)
            ).all()
        finally:
            db.close()

        if version_row is None and not rows:
            return None

        data: dict = {"version": int(version_row.value) if version_row else DB_VERSION}
        for collection in COLLECTIONS:
            data[collection] = []
        for row in rows:
            if row.collection in data:
                data[row.collection].append(json.loads(row.body_json))
        return data

    def _write(self, data: dict) -> None:
        self._ensure_schema()
        db = self._session_factory()
        try:
            db.execute(delete(StoredDocument))
            for collection in COLLECTIONS:
                for position, document in enumerate(data.get(collection, [])):
                    db.add(
                        StoredDocument(
                            collection=collection,
                            position=position,
                            body_json=json.dumps(document, ensure_ascii=True),
                        )
                    )
            version_row = db.get(StoreMeta, "version")
            if version_row is None:
                version_row = StoreMeta(key="version")
            version_row.value = str(data.get("version", DB_VERSION))
            version_row.updated_at = datetime.now(timezone.utc)
            db.add(version_row)
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()
