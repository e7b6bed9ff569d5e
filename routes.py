# routes.py
from fastapi import FastAPI
from controller.process_controller import process_router
from controller.queue_controller import queue_router


def register_routes(app: FastAPI) -> None:
    """Register & Access control controllers here."""
    app.include_router(queue_router)
    app.include_router(process_router)
