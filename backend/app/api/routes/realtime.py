"""
WebSocket endpoint for realtime inventory and catalog updates.

Server -> client only:
  {"type": "inventory-changed", "event_id", "available_seats", "sold_out"}
  {"type": "catalog-changed"}
Client frames are read and discarded so disconnects are noticed.
"""

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from app.services.realtime_service import manager

router = APIRouter(tags=["Realtime"])


@router.websocket("/ws")
async def realtime_endpoint(websocket: WebSocket):
    await manager.connect(websocket)
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        manager.disconnect(websocket)
