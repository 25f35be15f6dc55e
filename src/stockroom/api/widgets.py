"""Widget API routes.

Learn: These routes are the HTTP interface to WidgetService. Routes
translate HTTP to service calls and map "not found" results to 404;
the service handles persistence and change notification.

  GET    /widgets        list
  GET    /widgets/{id}   one widget or 404
  POST   /widgets        create (201)
  PUT    /widgets        update by body id, 404 if missing; no id = create
  DELETE /widgets/{id}   200 or 404
"""

from fastapi import APIRouter, Depends, HTTPException, Response

from stockroom.api.deps import get_widget_service
from stockroom.schemas.widget import NewWidget, Widget
from stockroom.services.widget_service import WidgetService

router = APIRouter()


@router.get("/widgets", response_model=list[Widget])
async def list_widgets(svc: WidgetService = Depends(get_widget_service)):
    return await svc.list_widgets()


@router.get("/widgets/{widget_id}", response_model=Widget)
async def get_widget(widget_id: int, svc: WidgetService = Depends(get_widget_service)):
    widget = await svc.get_widget(widget_id)
    if widget is None:
        raise HTTPException(status_code=404, detail="Widget not found")
    return widget


@router.post("/widgets", response_model=Widget, status_code=201)
async def create_widget(body: NewWidget, svc: WidgetService = Depends(get_widget_service)):
    """Create a widget. An `id` in the body is ignored."""
    return await svc.add_widget(body)


@router.put("/widgets", response_model=Widget)
async def update_widget(body: NewWidget, svc: WidgetService = Depends(get_widget_service)):
    widget = await svc.update_widget(body)
    if widget is None:
        raise HTTPException(status_code=404, detail="Widget not found")
    return widget


@router.delete("/widgets/{widget_id}")
async def delete_widget(widget_id: int, svc: WidgetService = Depends(get_widget_service)):
    if not await svc.delete_widget(widget_id):
        raise HTTPException(status_code=404, detail="Widget not found")
    return Response(status_code=200)
