"""Unit tests - engine, services, broadcaster, views and utilities"""
