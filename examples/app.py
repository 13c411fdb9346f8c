"""Minimal example embedding the drawing relay in an existing Litestar app.

The application will:
    - Serve the relay WebSocket at /draw
    - Mount the status, health and stats endpoints under /relay
    - Reclaim rooms that stay empty for ten minutes
    - Inject the room registry into its own route handlers

Running the Application:
    python examples/app.py

Then visit:
    - http://127.0.0.1:8000/relay/ - Relay status
    - http://127.0.0.1:8000/relay/room/abc - Status of room "abc"
    - http://127.0.0.1:8000/occupancy - Room and member counts, served by this example

Example WebSocket session (using websocat):
    websocat ws://127.0.0.1:8000/draw
    {"type": "joinRoom", "roomId": "abc", "isCreating": true}
    {"type": "draw", "x0": 0, "y0": 0, "x1": 10, "y1": 10, "color": "#000"}
"""

from __future__ import annotations

from litestar import Litestar, get

from scribbl_relay import RelayConfig, RelayPlugin, RoomRegistry
from scribbl_relay.core import configure_logging


@get("/occupancy")
async def occupancy(registry: RoomRegistry) -> dict[str, int]:
    """Report how many rooms are open and how many people are drawing."""
    return {"rooms": registry.active_rooms, "members": registry.total_members}


configure_logging(debug=True)

app = Litestar(
    route_handlers=[occupancy],
    plugins=[
        RelayPlugin(
            RelayConfig(
                ws_path="/draw",
                status_path="/relay",
                room_ttl_seconds=600,
            )
        )
    ],
    debug=True,
)

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="127.0.0.1", port=8000)
