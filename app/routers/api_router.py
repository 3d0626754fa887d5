from fastapi import APIRouter, Depends, HTTPException, Response

from app.schemas.todo import TodoCreate, TodoListOut, TodoOut
from app.services.todo_service import FormBusyError, ListStatus, RowBusyError, TodoNotFound, UserViews
from app.deps import get_views

router = APIRouter()


def _raise_for_list(views: UserViews) -> None:
    view = views.list
    if view.auth_missing:
        raise HTTPException(status_code=401, detail=view.error)
    if view.status is ListStatus.ERRORED:
        raise HTTPException(status_code=502, detail=view.error)


@router.get("", response_model=TodoListOut)
async def list_todos(views: UserViews = Depends(get_views)):
    await views.list.fetch()
    _raise_for_list(views)
    return views.list.snapshot()


@router.post("", response_model=TodoOut, status_code=201)
async def create_todo(todo_in: TodoCreate, views: UserViews = Depends(get_views)):
    await views.list.ensure_loaded()
    _raise_for_list(views)
    try:
        todo = await views.add_form.submit(todo_in.title)
    except FormBusyError as e:
        raise HTTPException(status_code=409, detail=e.message)
    if todo is None:
        raise HTTPException(status_code=502, detail=views.add_form.error)
    return todo


@router.post("/{todo_id}/toggle", response_model=TodoListOut)
async def toggle_todo(todo_id: int, views: UserViews = Depends(get_views)):
    await views.list.ensure_loaded()
    _raise_for_list(views)
    try:
        ok = await views.list.toggle(todo_id)
    except RowBusyError as e:
        raise HTTPException(status_code=409, detail=e.message)
    except TodoNotFound as e:
        raise HTTPException(status_code=404, detail=e.message)
    if not ok:
        raise HTTPException(status_code=502, detail=views.list.error)
    return views.list.snapshot()


@router.delete("/{todo_id}", status_code=204)
async def delete_todo(todo_id: int, views: UserViews = Depends(get_views)):
    await views.list.ensure_loaded()
    _raise_for_list(views)
    try:
        ok = await views.list.delete(todo_id)
    except RowBusyError as e:
        raise HTTPException(status_code=409, detail=e.message)
    except TodoNotFound as e:
        raise HTTPException(status_code=404, detail=e.message)
    if not ok:
        raise HTTPException(status_code=502, detail=views.list.error)
    return Response(status_code=204)
