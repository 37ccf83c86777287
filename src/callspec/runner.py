"""Run suite calls through the load/resolve/execute/verify/extract pipeline.

:class:`CallRunner` owns everything a run shares: the operation index, the
:class:`~callspec.context.RunContext`, and one open
:class:`~callspec.client.SyncClient`. Calls run strictly one at a time in
declaration order; a call writes to the variable store only after all of
its expectations have passed.

Example::

    index = OperationIndex.build(load_spec(config.openapi))
    with CallRunner(config, index) as runner:
        results = runner.run_suite(load_suite("users.calls.yaml"))
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import httpx

from callspec.client import ApiResponse, SyncClient
from callspec.context import RunContext
from callspec.exceptions import CallspecError, UnhandledResponseError
from callspec.expectations import verify_expect_structure, verify_failure, verify_response
from callspec.extraction import save_values
from callspec.models import CallSpec, RunConfig, SuiteFile
from callspec.output import debug, dump
from callspec.parser.operations import OperationIndex
from callspec.request_builder import build_request

logger = logging.getLogger(__name__)


@dataclass
class CallResult:
    """Outcome of one call in :meth:`CallRunner.run_suite`.

    Attributes:
        call: The call that ran.
        error: The error that failed it, or ``None`` on success.
        elapsed: Wall-clock seconds spent on the call.
    """

    call: CallSpec
    error: Optional[CallspecError] = None
    elapsed: float = 0.0

    @property
    def passed(self) -> bool:
        return self.error is None


class CallRunner:
    """Executes calls against one OpenAPI document with a shared variable store.

    Must be used as a context manager so that the HTTP client is opened and
    closed around the run.

    Args:
        config: Run configuration.
        index: Operations of the OpenAPI document.
        context: Variable store. Defaults to a new one seeded with
            ``config.variables``.
        transport: Optional :mod:`httpx` transport for the client.
    """

    def __init__(
        self,
        config: RunConfig,
        index: OperationIndex,
        context: Optional[RunContext] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.config = config
        self.index = index
        self.context = context or RunContext(variables=config.variables)
        self._client = SyncClient(config, transport=transport)

    def __enter__(self) -> CallRunner:
        self._client.__enter__()
        return self

    def __exit__(self, *args: object) -> None:
        self._client.__exit__(*args)

    def run_call(self, call: CallSpec, base_dir: Optional[Path] = None) -> None:
        """Run one call to completion.

        Args:
            call: The call to run.
            base_dir: Directory for relative ``$file`` references, usually
                the directory of the suite file.

        Raises:
            UnknownOperationError: If ``call.call`` is not in the index.
            CallspecError: Any other failure of the call.
        """
        operation = self.index.get(call.call)
        if base_dir is not None:
            self.context.base_dir = base_dir

        request = build_request(call, operation, self.context)

        response: Optional[ApiResponse] = None
        failure: Optional[UnhandledResponseError] = None
        try:
            response = self._client.send(self.index.fragment(call.call), request)
        except UnhandledResponseError as exc:
            failure = exc

        if call.print_response:
            if failure is not None:
                dump("Error=", _failure_dict(failure))
            else:
                dump("Response=", response.to_dict())

        if call.expect is not None:
            verify_expect_structure(call.expect)

        if failure is not None:
            verify_failure(call.expect, failure, self.context)
            return

        assert response is not None
        if call.expect is not None:
            verify_response(call.expect, response, self.context)

        save_values(call.save, response, self.context, print_values=call.print_response)

    def run_suite(self, suite: SuiteFile) -> list[CallResult]:
        """Run every call of *suite* in order, continuing after failures.

        Returns:
            One :class:`CallResult` per call.
        """
        results: list[CallResult] = []
        for call in suite.calls:
            started = time.monotonic()
            error: Optional[CallspecError] = None
            try:
                self.run_call(call, suite.base_dir)
            except CallspecError as exc:
                error = exc
                logger.debug("Call %s failed: %s", call.display_name, exc)
            elapsed = time.monotonic() - started
            debug(f"{call.display_name}: {'ok' if error is None else 'failed'} ({elapsed:.3f}s)")
            results.append(CallResult(call=call, error=error, elapsed=elapsed))
        return results


def _failure_dict(failure: UnhandledResponseError) -> dict[str, object]:
    return {"message": str(failure), "status": failure.status, "error": failure.error}
