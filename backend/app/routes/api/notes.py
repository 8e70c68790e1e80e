"""Note API routes.

列表接口按视图（分区 / 笔记本）返回笔记；变更接口在响应之后
通过后台任务重算并推送受影响的视图。

NOTE: 所有同步服务调用都使用 run_sync 包装，避免阻塞 event loop。
"""

from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Path

from app.core.async_utils import run_sync
from app.core.deps import CurrentUser, get_notebook_service, get_view_broadcaster
from app.schemas.common import SuccessResponse
from app.schemas.note import Note, NoteCreate, NoteUpdate
from domains.core.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()


async def _list_view(service, user_id: str, section: str, notebook_id: Optional[str]) -> list[Note]:
    notes = await run_sync(service.list_notes, user_id, section, notebook_id)
    return [Note.from_entity(n) for n in notes]


@router.get("/{section}", response_model=list[Note])
async def list_section_notes(
    user_id: CurrentUser,
    section: str = Path(..., description="分区"),
    service=Depends(get_notebook_service),
):
    """获取分区视图的笔记（favorites / locked，或整个分区）"""
    return await _list_view(service, user_id, section, None)


@router.get("/{section}/{notebook_id}", response_model=list[Note])
async def list_notebook_notes(
    user_id: CurrentUser,
    section: str = Path(..., description="分区"),
    notebook_id: str = Path(..., description="笔记本 ID"),
    service=Depends(get_notebook_service),
):
    """获取某个笔记本内的笔记（按更新时间倒序）"""
    return await _list_view(service, user_id, section, notebook_id)


@router.post("", response_model=Note)
async def create_note(
    user_id: CurrentUser,
    request: NoteCreate,
    background_tasks: BackgroundTasks,
    service=Depends(get_notebook_service),
    broadcaster=Depends(get_view_broadcaster),
):
    """创建笔记"""
    mutation = await run_sync(
        service.create_note,
        user_id,
        content=request.content,
        section=request.section,
        notebook_id=request.notebook_id,
        title=request.title,
        is_checked=request.is_checked,
        is_favorite=request.is_favorite,
        is_locked=request.is_locked,
    )
    background_tasks.add_task(broadcaster.recompute_and_push, user_id, mutation.view_keys)

    logger.info("note_created", note_id=mutation.result.id, section=mutation.result.section)
    return Note.from_entity(mutation.result)


@router.put("/{note_id}", response_model=Note)
async def update_note(
    user_id: CurrentUser,
    request: NoteUpdate,
    background_tasks: BackgroundTasks,
    note_id: str = Path(..., description="笔记 ID"),
    service=Depends(get_notebook_service),
    broadcaster=Depends(get_view_broadcaster),
):
    """更新笔记（只修改请求中提供的字段）"""
    mutation = await run_sync(
        service.update_note,
        user_id,
        note_id,
        **request.model_dump(exclude_none=True),
    )
    background_tasks.add_task(broadcaster.recompute_and_push, user_id, mutation.view_keys)

    logger.info("note_updated", note_id=note_id, views=[str(k) for k in mutation.view_keys])
    return Note.from_entity(mutation.result)


@router.delete("/{note_id}", response_model=SuccessResponse)
async def delete_note(
    user_id: CurrentUser,
    background_tasks: BackgroundTasks,
    note_id: str = Path(..., description="笔记 ID"),
    service=Depends(get_notebook_service),
    broadcaster=Depends(get_view_broadcaster),
):
    """删除笔记"""
    mutation = await run_sync(service.delete_note, user_id, note_id)
    background_tasks.add_task(broadcaster.recompute_and_push, user_id, mutation.view_keys)

    logger.info("note_deleted", note_id=note_id)
    return SuccessResponse()


@router.post("/{note_id}/favorite", response_model=Note)
async def toggle_favorite(
    user_id: CurrentUser,
    background_tasks: BackgroundTasks,
    note_id: str = Path(..., description="笔记 ID"),
    service=Depends(get_notebook_service),
    broadcaster=Depends(get_view_broadcaster),
):
    """切换收藏状态"""
    mutation = await run_sync(service.toggle_favorite, user_id, note_id)
    background_tasks.add_task(broadcaster.recompute_and_push, user_id, mutation.view_keys)

    logger.info("note_favorite_toggled", note_id=note_id, is_favorite=mutation.result.is_favorite)
    return Note.from_entity(mutation.result)
