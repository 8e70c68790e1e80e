"""Notebook API routes.

变更接口在响应之后通过后台任务重算并推送受影响的视图。

NOTE: 所有同步服务调用都使用 run_sync 包装，避免阻塞 event loop。
"""

from fastapi import APIRouter, BackgroundTasks, Depends, Path

from app.core.async_utils import run_sync
from app.core.deps import CurrentUser, get_notebook_service, get_view_broadcaster
from app.schemas.common import SuccessResponse
from app.schemas.notebook import Notebook, NotebookCreate
from domains.core.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()


@router.get("/{section}", response_model=list[Notebook])
async def list_notebooks(
    user_id: CurrentUser,
    section: str = Path(..., description="分区"),
    service=Depends(get_notebook_service),
):
    """获取分区的笔记本列表（新建的在前，附带笔记数量）"""
    summaries = await run_sync(service.list_notebooks, user_id, section)
    return [Notebook.from_summary(s) for s in summaries]


@router.post("", response_model=Notebook)
async def create_notebook(
    user_id: CurrentUser,
    request: NotebookCreate,
    background_tasks: BackgroundTasks,
    service=Depends(get_notebook_service),
    broadcaster=Depends(get_view_broadcaster),
):
    """创建笔记本"""
    mutation = await run_sync(service.create_notebook, user_id, request.name, request.section)
    background_tasks.add_task(broadcaster.recompute_and_push, user_id, mutation.view_keys)

    logger.info("notebook_created", notebook_id=mutation.result.notebook.id, section=mutation.result.notebook.section)
    return Notebook.from_summary(mutation.result)


@router.delete("/{notebook_id}", response_model=SuccessResponse)
async def delete_notebook(
    user_id: CurrentUser,
    background_tasks: BackgroundTasks,
    notebook_id: str = Path(..., description="笔记本 ID"),
    service=Depends(get_notebook_service),
    broadcaster=Depends(get_view_broadcaster),
):
    """删除笔记本（级联删除其下笔记）"""
    mutation = await run_sync(service.delete_notebook, user_id, notebook_id)
    background_tasks.add_task(broadcaster.recompute_and_push, user_id, mutation.view_keys)

    logger.info("notebook_deleted", notebook_id=notebook_id, section=mutation.result.section)
    return SuccessResponse()
