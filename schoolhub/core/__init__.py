"""Core utilities shared by the HTTP and real-time layers."""
