"""Message dispatcher: the helper's request/response loop.

States: AwaitingFrame -> Processing -> AwaitingFrame, ending in Closed when
the input stream ends. Each request is handled to completion (including
any loader spawn) before the next frame is read.

INVARIANT: every request yields exactly one response frame. Protocol
errors, bad requests and handler bugs all become ``error`` frames; only a
broken transport ends the loop early.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, BinaryIO

from pydantic import ValidationError

from rapunzel import __version__
from rapunzel.config.logging import request_context
from rapunzel.domain.types import ErrorCode
from rapunzel.infrastructure.scanner import scan_report
from rapunzel.protocol.framing import (
    EndOfStream,
    FrameReader,
    FrameWriter,
    ProtocolError,
)
from rapunzel.protocol.messages import (
    Action,
    InvalidRequest,
    Request,
    ResponseType,
    error_response,
    response,
)

if TYPE_CHECKING:
    from rapunzel.host.context import HostContext

logger = logging.getLogger(__name__)


class Dispatcher:
    """Route decoded requests to handlers and drive the frame loop."""

    def __init__(self, context: HostContext) -> None:
        self._ctx = context

    # ------------------------------------------------------------------
    # Loop
    # ------------------------------------------------------------------

    def serve(self, reader: FrameReader, writer: FrameWriter) -> None:
        """Process frames until the input ends.

        Transport ``OSError`` propagates to the caller.
        """
        while True:
            try:
                message = reader.read()
            except EndOfStream:
                logger.debug("Input closed; %d extensions still tracked", len(self._ctx.registry))
                return
            except ProtocolError as exc:
                logger.warning("Rejected frame: %s", exc)
                reply = error_response(exc.code, str(exc))
            else:
                reply = self.handle(message)
            self._send(writer, reply)

    def _send(self, writer: FrameWriter, reply: dict[str, Any]) -> None:
        try:
            writer.write(reply)
        except ProtocolError as exc:
            logger.warning("Response to %s dropped: %s", reply.get("type"), exc)
            writer.write(error_response(exc.code, str(exc)))

    # ------------------------------------------------------------------
    # Routing
    # ------------------------------------------------------------------

    def handle(self, message: Any) -> dict[str, Any]:
        """Produce the single response for one decoded request."""
        try:
            request = Request.model_validate(message)
        except ValidationError as exc:
            errors = "; ".join(err["msg"] for err in exc.errors())
            return error_response(ErrorCode.INVALID_REQUEST, f"Invalid request: {errors}")

        with request_context(request.action, request.path):
            return self._dispatch(request)

    def _dispatch(self, request: Request) -> dict[str, Any]:
        try:
            action = Action(request.action)
        except ValueError:
            logger.warning("Unknown action %r", request.action)
            return error_response(ErrorCode.UNKNOWN_ACTION, f"Unknown action: {request.action}")

        logger.debug("Handling %s", action)
        try:
            return self._route(action, request)
        except InvalidRequest as exc:
            return error_response(ErrorCode.INVALID_REQUEST, str(exc))
        except Exception as exc:
            logger.exception("Handler for %s failed", action)
            return error_response(ErrorCode.INTERNAL_ERROR, str(exc) or type(exc).__name__)

    def _route(self, action: Action, request: Request) -> dict[str, Any]:
        match action:
            case Action.STATUS:
                return self._status()
            case Action.SCAN:
                return self._scan()
            case Action.SET_FOLDER:
                return self._set_folder(_require_path(request))
            case Action.LOAD:
                return self._load(_require_path(request))
            case Action.LOAD_ALL:
                return self._load_all()
            case Action.UNLOAD:
                return self._unload(_require_path(request))
            case Action.UNLOAD_ALL:
                return self._unload_all()
            case _:
                return error_response(ErrorCode.UNKNOWN_ACTION, f"Unknown action: {action}")

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def _status(self) -> dict[str, Any]:
        ctx = self._ctx
        return response(
            ResponseType.STATUS,
            version=__version__,
            firefoxPath=ctx.orchestrator.locate_browser(ctx.config),
            loaderPath=ctx.orchestrator.locate_loader(),
            extensionFolder=ctx.config.extension_folder,
            loadedCount=len(ctx.registry),
        )

    def _extensions(self) -> list[dict[str, Any]]:
        report = scan_report(self._ctx.config.extension_folder)
        return [descriptor.payload() for descriptor in report.extensions]

    def _scan(self) -> dict[str, Any]:
        return response(
            ResponseType.EXTENSIONS_LIST,
            extensions=self._extensions(),
            folder=self._ctx.config.extension_folder,
        )

    def _set_folder(self, path: str) -> dict[str, Any]:
        persisted = self._ctx.set_folder(path)
        return response(
            ResponseType.FOLDER_SET,
            success=True,
            path=path,
            persisted=persisted,
            extensions=self._extensions(),
        )

    def _load(self, path: str) -> dict[str, Any]:
        result = self._ctx.orchestrator.load(path, self._ctx.config)
        return response(ResponseType.LOAD_RESULT, **result.payload())

    def _load_all(self) -> dict[str, Any]:
        report = scan_report(self._ctx.config.extension_folder)
        result = self._ctx.orchestrator.load_all(report, self._ctx.config)
        return response(ResponseType.LOAD_ALL_RESULT, **result.payload())

    def _unload(self, path: str) -> dict[str, Any]:
        result = self._ctx.orchestrator.unload(path)
        return response(ResponseType.UNLOAD_RESULT, **result.payload())

    def _unload_all(self) -> dict[str, Any]:
        result = self._ctx.orchestrator.unload_all()
        return response(ResponseType.UNLOAD_ALL_RESULT, **result.payload())


def _require_path(request: Request) -> str:
    if request.path is None:
        msg = f"Action '{request.action}' requires a 'path'"
        raise InvalidRequest(msg)
    return request.path


def run_host(context: HostContext, stdin: BinaryIO, stdout: BinaryIO) -> int:
    """Speak the framed protocol on the given streams. Returns an exit status."""
    dispatcher = Dispatcher(context)
    try:
        dispatcher.serve(FrameReader(stdin), FrameWriter(stdout))
    except OSError as exc:
        logger.error("Native messaging transport failed: %s", exc)
        return 1
    return 0
