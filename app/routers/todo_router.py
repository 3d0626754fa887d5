from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import RedirectResponse

from app.config import Settings
from app.deps import get_settings, get_views
from app.messages import t
from app.services.todo_service import FormBusyError, RowBusyError, TodoNotFound, UserViews
from app.templating import FLASH_KEYS, templates

router = APIRouter()


def render_todos(request: Request, settings: Settings, views: UserViews, *, flash: str | None = None,
                 typed: str | None = None, form_error: str | None = None, status_code: int = 200):
    """Render the list page; ``typed``/``form_error`` override the shared add form for this response."""
    return templates.TemplateResponse(
        request,
        "todos.html",
        {
            "locale": settings.locale,
            "view": views.list,
            "form": views.add_form,
            "typed": views.add_form.title if typed is None else typed,
            "form_error": form_error or views.add_form.error,
            "flash": flash,
        },
        status_code=status_code,
    )


def back_to_list(settings: Settings) -> RedirectResponse:
    return RedirectResponse(settings.home_path, status_code=303)


@router.get("")
async def list_page(request: Request, msg: str | None = None, settings: Settings = Depends(get_settings),
                    views: UserViews = Depends(get_views)):
    await views.list.fetch()
    flash = t(msg, settings.locale) if msg in FLASH_KEYS else None
    return render_todos(request, settings, views, flash=flash, status_code=401 if views.list.auth_missing else 200)


@router.post("")
async def add_todo(request: Request, title: str = Form(""), settings: Settings = Depends(get_settings),
                   views: UserViews = Depends(get_views)):
    if not title.strip():
        return render_todos(request, settings, views, typed=title, form_error=t("title_required", settings.locale),
                            status_code=400)
    await views.list.ensure_loaded()
    try:
        todo = await views.add_form.submit(title)
    except FormBusyError as e:
        return render_todos(request, settings, views, typed=title, form_error=e.message, status_code=409)
    if todo is None:
        return render_todos(request, settings, views)
    return back_to_list(settings)


@router.post("/{todo_id}/toggle")
async def toggle_todo(request: Request, todo_id: int, settings: Settings = Depends(get_settings),
                      views: UserViews = Depends(get_views)):
    await views.list.ensure_loaded()
    try:
        ok = await views.list.toggle(todo_id)
    except RowBusyError as e:
        return render_todos(request, settings, views, flash=e.message, status_code=409)
    except TodoNotFound as e:
        return render_todos(request, settings, views, flash=e.message, status_code=404)
    return back_to_list(settings) if ok else render_todos(request, settings, views)


@router.post("/{todo_id}/delete")
async def delete_todo(request: Request, todo_id: int, settings: Settings = Depends(get_settings),
                      views: UserViews = Depends(get_views)):
    await views.list.ensure_loaded()
    try:
        ok = await views.list.delete(todo_id)
    except RowBusyError as e:
        return render_todos(request, settings, views, flash=e.message, status_code=409)
    except TodoNotFound as e:
        return render_todos(request, settings, views, flash=e.message, status_code=404)
    return back_to_list(settings) if ok else render_todos(request, settings, views)
