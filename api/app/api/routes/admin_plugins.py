"""Admin plugin upload and the current session's imported-plugin registry."""
import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile, status
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.deps import get_current_session
from app.core.security import verify_csrf_token
from app.db.session import get_db
from app.models.models import ImportedPlugin, Session as SessionModel
from app.schemas.plugin import MenuDeclarationRead, PluginImportResponse, PluginInfo, PluginRead
from app.services.audit import log_audit
from app.services.plugin_exceptions import PluginImportError
from app.services.plugin_import import apply_schema_statements, run_plugin_import, store_upload
from app.services.plugin_registry import PluginRegistry, get_plugin_registry

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_client_ip(request: Request) -> str | None:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


def _to_read(record: ImportedPlugin) -> PluginRead:
    return PluginRead(
        slug=record.slug,
        path=record.path,
        info=PluginInfo(
            name=record.name,
            version=record.version,
            description=record.description,
            author=record.author,
            main_file=record.main_file,
        ),
        menus=[MenuDeclarationRead(**m) for m in record.menus or []],
        schemas=list(record.schemas or []),
        imported_at=record.updated_at,
    )


@router.get("", response_model=list[PluginRead])
def list_plugins(registry: PluginRegistry = Depends(get_plugin_registry)):
    """Plugins imported during this login session."""
    return [_to_read(p) for p in registry.list()]


@router.get("/{slug:path}", response_model=PluginRead)
def get_plugin(slug: str, registry: PluginRegistry = Depends(get_plugin_registry)):
    record = registry.get(slug)
    if not record:
        raise HTTPException(status_code=404, detail="Plugin not found")
    return _to_read(record)


@router.post("/upload", response_model=PluginImportResponse, status_code=status.HTTP_201_CREATED)
async def upload_plugin(
    request: Request,
    plugin_zip: UploadFile = File(...),
    csrf_token: str = Form(""),
    db: Session = Depends(get_db),
    sess: SessionModel = Depends(get_current_session),
    registry: PluginRegistry = Depends(get_plugin_registry),
):
    """
    Import a plugin ZIP: extract, scrape metadata/menus/CREATE TABLE statements,
    record it for this session, then run the statements against the store.

    Statement failures are logged and reported in schema_errors; they do not fail the upload.
    """
    if not verify_csrf_token(sess.csrf_token, csrf_token):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid CSRF token")

    data = await plugin_zip.read()
    archive_path = None
    try:
        archive_path = store_upload(data, plugin_zip.filename or "", settings.plugin_upload_dir)
        result = run_plugin_import(archive_path, settings.plugin_extract_dir)
    except PluginImportError as e:
        logger.info("plugin upload rejected: %s", e)
        raise HTTPException(status_code=400, detail=str(e))
    finally:
        if archive_path is not None:
            archive_path.unlink(missing_ok=True)

    record = registry.save(result)
    # Commit before running plugin DDL on its own connections.
    db.commit()
    outcomes = apply_schema_statements(db.get_bind(), result.schemas)
    errors = [str(o.error) for o in outcomes if o.error]

    log_audit(
        db,
        user_id=sess.user_id,
        action_type="plugin_imported",
        record_type="plugin",
        record_id=result.slug,
        after_json={
            "name": result.descriptor.name,
            "menus": len(result.menus),
            "schema_statements": len(result.schemas),
            "schema_errors": len(errors),
        },
        ip_address=_get_client_ip(request),
    )
    db.commit()
    db.refresh(record)
    return PluginImportResponse(
        plugin=_to_read(record),
        schema_statements=len(result.schemas),
        schema_errors=errors,
    )
