"""
Backend Scripts Module

Utility scripts for database setup and maintenance.

Available scripts:
    - seed_data.py: Creates sample services, counters and agents

Usage:
    python -m scripts.seed_data
    python -m scripts.seed_data --reset
"""
