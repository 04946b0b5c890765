"""Per-session registry of imported plugins, keyed by slug."""
from __future__ import annotations

from uuid import UUID

from fastapi import Depends
from sqlalchemy.orm import Session as DBSession

from app.core.deps import get_current_session
from app.db.session import get_db
from app.models.models import ImportedPlugin, Session, utcnow
from app.services.plugin_import import PluginImportResult


class PluginRegistry:
    """Imported plugins visible to one login session. The caller commits."""

    def __init__(self, db: DBSession, session_id: UUID) -> None:
        self.db = db
        self.session_id = session_id

    def _query(self):
        return self.db.query(ImportedPlugin).filter(ImportedPlugin.session_id == self.session_id)

    def list(self) -> list[ImportedPlugin]:
        return self._query().order_by(ImportedPlugin.created_at).all()

    def get(self, slug: str) -> ImportedPlugin | None:
        return self._query().filter(ImportedPlugin.slug == slug).first()

    def save(self, result: PluginImportResult) -> ImportedPlugin:
        """Insert or replace the record for result.slug; the last import wins."""
        record = self.get(result.slug)
        if record is None:
            record = ImportedPlugin(session_id=self.session_id, slug=result.slug)
            self.db.add(record)
        d = result.descriptor
        record.name = d.name
        record.version = d.version
        record.description = d.description
        record.author = d.author
        record.main_file = str(d.main_file)
        record.path = str(result.path)
        record.menus = [m.as_dict() for m in result.menus]
        record.schemas = list(result.schemas)
        # onupdate only fires when a column changed; an identical re-import still counts
        record.updated_at = utcnow()
        self.db.flush()
        return record

    def clear(self) -> int:
        return self._query().delete(synchronize_session=False)


def get_plugin_registry(
    db: DBSession = Depends(get_db),
    sess: Session = Depends(get_current_session),
) -> PluginRegistry:
    return PluginRegistry(db, sess.id)
