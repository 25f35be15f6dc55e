"""Real-time infrastructure — in-process notifier + WebSocket.

Learn: Events flow through two hops:
1. WidgetService → ChangeNotifier.publish (after the DB commit)
2. ChangeNotifier → WebSocketSink → connected clients

Single process only: the registry lives in memory and is lost on restart.
"""
