# app/delivery/api/template_editor.py
from fastapi import APIRouter, Request, Depends, HTTPException, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials
from fastapi.responses import Response
from typing import List, Optional
from io import BytesIO
import asyncio
import secrets
import logging
import traceback

from app.config.settings import settings
from app.delivery.schemas.body import (
    BackgroundInfo,
    ExportRequest,
    FieldCreate,
    FieldOut,
    FillForm,
    FillValues,
    ImageInfo,
    ImageUpload,
    InteractionOut,
    ModeUpdate,
    PointerEvent,
    ResizeStartEvent,
)
from app.domain.errors import ExportPrecondition, InvalidAsset, InvalidFieldCreation
from app.domain.template_service import TemplateService

security = HTTPBasic()
logger = logging.getLogger("uvicorn.error")

def verify_basic_auth(creds: HTTPBasicCredentials = Depends(security)) -> None:
    ok_user = secrets.compare_digest(creds.username, settings.BASIC_AUTH_USERNAME)
    ok_pass = secrets.compare_digest(creds.password, settings.BASIC_AUTH_PASSWORD)
    if not (ok_user and ok_pass):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
            headers={"WWW-Authenticate": "Basic"},
        )

router = APIRouter(dependencies=[Depends(verify_basic_auth)])

def get_service(request: Request) -> TemplateService:
    service = getattr(request.app.state, "template_service", None)
    if service is None:
        logger.error("Template service not initialized")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service is not ready. Please try again in a moment.",
        )
    return service

async def _offload(request: Request, fn, *args):
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(request.app.state.executor, fn, *args)

# --- background & photo ---

@router.put("/background", response_model=ImageInfo)
def upload_background(body: ImageUpload, service: TemplateService = Depends(get_service)):
    try:
        img = service.set_background(body.image)
    except InvalidAsset as e:
        raise HTTPException(status_code=422, detail=str(e))
    return ImageInfo(width=img.width, height=img.height)

@router.get("/background", response_model=BackgroundInfo)
def background_info(service: TemplateService = Depends(get_service)):
    size = service.background_size()
    if size is None:
        return BackgroundInfo(loaded=False)
    return BackgroundInfo(loaded=True, width=size[0], height=size[1])

@router.put("/fill/photo", response_model=ImageInfo)
def upload_photo(body: ImageUpload, service: TemplateService = Depends(get_service)):
    try:
        img = service.set_photo(body.image)
    except InvalidAsset as e:
        raise HTTPException(status_code=422, detail=str(e))
    return ImageInfo(width=img.width, height=img.height)

@router.delete("/fill/photo", status_code=status.HTTP_204_NO_CONTENT)
def remove_photo(service: TemplateService = Depends(get_service)):
    service.clear_photo()

# --- fields ---

@router.get("/fields", response_model=List[FieldOut])
def list_fields(service: TemplateService = Depends(get_service)):
    return [FieldOut(**f.model_dump()) for f in service.list_fields()]

@router.post("/fields", response_model=FieldOut, status_code=status.HTTP_201_CREATED)
def add_field(body: FieldCreate, service: TemplateService = Depends(get_service)):
    try:
        field = service.add_field(body.kind, body.label)
    except InvalidFieldCreation as e:
        raise HTTPException(status_code=422, detail=str(e))
    return FieldOut(**field.model_dump())

@router.delete("/fields/{field_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_field(field_id: str, service: TemplateService = Depends(get_service)):
    service.remove_field(field_id)

# --- mode & fill session ---

@router.put("/mode", response_model=ModeUpdate)
def set_mode(body: ModeUpdate, service: TemplateService = Depends(get_service)):
    return ModeUpdate(mode=service.set_mode(body.mode))

@router.get("/fill/form", response_model=FillForm)
def fill_form(service: TemplateService = Depends(get_service)):
    return FillForm(**service.fill_form())

@router.put("/fill/values", response_model=FillValues)
def set_values(body: FillValues, service: TemplateService = Depends(get_service)):
    return FillValues(values=service.set_values(body.values))

# --- canvas interaction ---

@router.get("/interaction", response_model=InteractionOut)
def interaction_state(service: TemplateService = Depends(get_service)):
    return InteractionOut.from_state(service.interaction_state())

@router.post("/interaction/pointer-down", response_model=InteractionOut)
def pointer_down(event: PointerEvent, service: TemplateService = Depends(get_service)):
    return InteractionOut.from_state(service.pointer_down(event.x, event.y, event.viewport))

@router.post("/interaction/drag/start", response_model=InteractionOut)
def drag_start(event: PointerEvent, service: TemplateService = Depends(get_service)):
    return InteractionOut.from_state(service.drag_start(event.x, event.y, event.viewport))

@router.post("/interaction/drag/move", response_model=InteractionOut)
def drag_move(event: PointerEvent, service: TemplateService = Depends(get_service)):
    return InteractionOut.from_state(service.drag_move(event.x, event.y, event.viewport))

@router.post("/interaction/drag/end", response_model=InteractionOut)
def drag_end(event: PointerEvent, service: TemplateService = Depends(get_service)):
    return InteractionOut.from_state(service.drag_end(event.x, event.y, event.viewport))

@router.post("/interaction/resize/start", response_model=InteractionOut)
def resize_start(event: ResizeStartEvent, service: TemplateService = Depends(get_service)):
    return InteractionOut.from_state(service.resize_start(event.x, event.y, event.viewport, event.handle))

@router.post("/interaction/resize/move", response_model=InteractionOut)
def resize_move(event: PointerEvent, service: TemplateService = Depends(get_service)):
    return InteractionOut.from_state(service.resize_move(event.x, event.y, event.viewport))

@router.post("/interaction/resize/end", response_model=InteractionOut)
def resize_end(event: PointerEvent, service: TemplateService = Depends(get_service)):
    return InteractionOut.from_state(service.resize_end(event.x, event.y, event.viewport))

# --- output ---

@router.get("/render")
async def render(request: Request, service: TemplateService = Depends(get_service)):
    try:
        surface = await _offload(request, service.render)
    except Exception as e:
        logger.error(f"=== RENDER ERROR: {e} ===\n{traceback.format_exc()}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Rendering failed.",
        )
    if surface is None:
        # Background not loaded yet
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    buf = BytesIO()
    surface.save(buf, format="PNG")
    return Response(content=buf.getvalue(), media_type="image/png")

@router.post("/export")
async def export(request: Request, body: Optional[ExportRequest] = None, service: TemplateService = Depends(get_service)):
    fmt = body.format if body else None
    try:
        document = await _offload(request, service.export, fmt)
    except ExportPrecondition as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except Exception as e:
        logger.error(f"=== EXPORT ERROR: {e} ===\n{traceback.format_exc()}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Export failed.",
        )
    logger.info(f"Export served: {document.filename}")
    return Response(
        content=document.content,
        media_type=document.media_type,
        headers={
            "Content-Disposition": f'attachment; filename="{document.filename}"',
            "X-Page-Orientation": document.orientation,
        },
    )
