"""In-process authoritative game service and its websocket front."""
