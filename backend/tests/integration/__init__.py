"""Integration tests - HTTP and WebSocket endpoints"""
