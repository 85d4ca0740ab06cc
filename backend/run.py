"""
Run the QueueFlow API with uvicorn.

Usage:
    python run.py
    python run.py --reload          # Development mode with auto-reload
    python run.py --port 8080       # Custom port
    python run.py --no-scheduler    # Skip the daily queue reset job
"""
import argparse
import os

import uvicorn


def main():
    parser = argparse.ArgumentParser(description="Run the QueueFlow API server")
    parser.add_argument(
        "--host",
        type=str,
        default="0.0.0.0",
        help="Host to bind to (default: 0.0.0.0, kiosks and displays sit on the LAN)"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port to bind to (default: 8000)"
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload for development"
    )
    parser.add_argument(
        "--no-scheduler",
        action="store_true",
        help="Disable the daily queue reset scheduler"
    )

    args = parser.parse_args()

    if args.no_scheduler:
        os.environ["SCHEDULER_ENABLED"] = "false"

    print("Starting QueueFlow API server...")
    print(f"  Host: {args.host}")
    print(f"  Port: {args.port}")
    print(f"  Reload: {args.reload}")
    print(f"  Scheduler: {'off' if args.no_scheduler else 'on'}")
    print()

    # Single worker: the realtime hub and the reset guard live in process memory
    uvicorn.run(
        "queueflow.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        workers=1
    )


if __name__ == "__main__":
    main()
