"""Stockroom — widget inventory tracking with live change notifications.

REST endpoints for widget CRUD, plus a WebSocket channel that pushes
every create/update/delete to all connected clients.
"""

__version__ = "0.1.0"
