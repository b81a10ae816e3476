import logging
from typing import Union

from fastapi import BackgroundTasks, Body, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from till.collaborators import OperatorShell
from till.errors import NotFound, TransactionFailure, ValidationFailure
from till.inventory import InventoryStore
from till.schemas import InventoryItemOut, InventoryPatch, UpdateResponse

logger = logging.getLogger(__name__)


def get_inventory(request: Request) -> InventoryStore:
    return request.app.state.inventory


def _failure(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message})


async def _not_found(request: Request, exc: NotFound) -> JSONResponse:
    return _failure(404, str(exc))


async def _invalid(request: Request, exc: Exception) -> JSONResponse:
    return _failure(422, f"invalid payload: {exc}")


async def _transaction_failed(request: Request, exc: TransactionFailure) -> JSONResponse:
    return _failure(500, f"inventory update rolled back: {exc}")


def _signal_refresh(shell: OperatorShell) -> None:
    # Best effort: the inventory view also reloads when its tab gains focus.
    try:
        shell.inventory_changed()
    except Exception:
        logger.warning("Inventory refresh signal was not delivered", exc_info=True)


def create_api(inventory: InventoryStore, shell: OperatorShell) -> FastAPI:
    app = FastAPI(title="Till Inventory Sync")
    app.state.inventory = inventory
    app.state.shell = shell
    app.add_exception_handler(NotFound, _not_found)
    app.add_exception_handler(ValidationFailure, _invalid)
    app.add_exception_handler(RequestValidationError, _invalid)
    app.add_exception_handler(TransactionFailure, _transaction_failed)

    @app.get("/health", tags=["health"])
    def health_check() -> dict:
        return {"status": "healthy"}

    @app.get("/inventory", tags=["Inventory"], response_model=list[InventoryItemOut])
    def list_inventory(inventory: InventoryStore = Depends(get_inventory)) -> list[InventoryItemOut]:
        return inventory.list_items()

    @app.post("/inventory/update", tags=["Inventory"], response_model=UpdateResponse)
    def update_inventory(
        background_tasks: BackgroundTasks,
        request: Request,
        payload: Union[list[InventoryPatch], InventoryPatch] = Body(...),
        inventory: InventoryStore = Depends(get_inventory),
    ) -> UpdateResponse:
        patches = payload if isinstance(payload, list) else [payload]
        result = inventory.batch_update(patches)
        background_tasks.add_task(_signal_refresh, request.app.state.shell)
        return UpdateResponse(success=True, message=result.message)

    return app
