"""HTTP and WebSocket API package."""
