from __future__ import annotations

import logging
import re
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional, Union

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .addresses import is_valid_address
from .config import Settings
from .draw import get_random_token_holder
from .errors import HolderPickerError, InvalidAddress
from .rpc import RpcClient
from .transfer import build_transfer_base64

log = logging.getLogger("app")

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


class HolderRequest(BaseModel):
    mintAddress: Any = None
    minTokens: Optional[Union[int, float, str]] = None
    walletKey: Any = None


def parse_min_tokens(value: Any, default: int) -> int:
    """
    Lenient integer parse: 42, 42.9, "42" and "42abc" all give 42.
    Missing, zero, non-finite or unparsable input falls back to ``default``.
    """
    if isinstance(value, bool) or value is None:
        return default
    if isinstance(value, (int, float)):
        try:
            parsed = int(value)
        except (OverflowError, ValueError):
            return default
    else:
        match = _LEADING_INT.match(str(value))
        if not match:
            return default
        parsed = int(match.group(1))
    return parsed or default


def create_app(settings: Optional[Settings] = None, rpc: Optional[RpcClient] = None) -> FastAPI:
    settings = settings or Settings.from_env()
    owns_rpc = rpc is None

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        if owns_rpc:
            app.state.rpc.close()

    app = FastAPI(title="Random Token Holder", lifespan=lifespan)
    app.state.settings = settings
    app.state.rpc = rpc or RpcClient(settings.rpc_url, timeout_s=settings.rpc_timeout_s)

    @app.exception_handler(InvalidAddress)
    async def invalid_address_handler(request: Request, exc: InvalidAddress) -> JSONResponse:
        return JSONResponse(status_code=400, content={"error": str(exc)})

    @app.exception_handler(RequestValidationError)
    async def bad_body_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"error": "Invalid request body"})

    @app.exception_handler(HolderPickerError)
    async def holder_error_handler(request: Request, exc: HolderPickerError) -> JSONResponse:
        log.error("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=500, content={"error": str(exc)})

    @app.exception_handler(Exception)
    async def error_handler(request: Request, exc: Exception) -> JSONResponse:
        return JSONResponse(status_code=500, content={"error": str(exc)})

    @app.get("/config")
    def get_config() -> Dict[str, Any]:
        return settings.public_config()

    @app.post("/getHolder")
    def get_holder(body: HolderRequest) -> Dict[str, Any]:
        if not is_valid_address(body.mintAddress):
            raise InvalidAddress("Invalid Solana address format")

        if settings.transaction_confirmation and body.walletKey:
            tx_b64 = build_transfer_base64(
                app.state.rpc,
                payer=body.walletKey,
                recipient=settings.transaction_recipient,
                amount_sol=settings.transaction_amount,
            )
            return {"transactionBase64": tx_b64}

        min_tokens = parse_min_tokens(body.minTokens, settings.default_min_balance)
        result = get_random_token_holder(app.state.rpc, body.mintAddress, min_tokens)
        return result.to_dict()

    return app
