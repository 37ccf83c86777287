"""pytest integration: collect suite files and run each call as a test item.

Files matching the ``callspec_files`` ini patterns (default
``*.calls.yaml *.calls.yml``) are collected once an OpenAPI source is
configured through ``--callspec-openapi``, the ``callspec_openapi`` ini
value, ``CALLSPEC_OPENAPI`` or ``callspec.json``. Without one the plugin
stays inert, so installing callspec never changes an unrelated test run.

Every call becomes one :class:`CallItem` named after the call's ``name``
(or its ``call``). All items of a session share one
:class:`~callspec.runner.CallRunner`, and therefore one variable store:
values saved by a call in one file are visible to later calls in any file.

Example ``pytest.ini``::

    [pytest]
    callspec_openapi = openapi.yaml
    callspec_files = *.calls.yaml
"""

from __future__ import annotations

import fnmatch
import logging
from pathlib import Path
from typing import Any, Iterator, Optional

import pytest

from callspec import hookspecs
from callspec.config import resolve_config
from callspec.exceptions import CallspecError, ConfigError
from callspec.models import CallSpec, RunConfig
from callspec.output import OutputManager, set_output
from callspec.parser import OperationIndex, load_spec, load_suite
from callspec.runner import CallRunner

logger = logging.getLogger(__name__)

_DEFAULT_PATTERNS = ["*.calls.yaml", "*.calls.yml"]


def pytest_addhooks(pluginmanager: pytest.PytestPluginManager) -> None:
    pluginmanager.add_hookspecs(hookspecs)


def pytest_addoption(parser: pytest.Parser) -> None:
    group = parser.getgroup("callspec", "declarative OpenAPI call suites")
    group.addoption(
        "--callspec-openapi",
        dest="callspec_openapi",
        default=None,
        help="URL or file path of the OpenAPI document suites are run against.",
    )
    group.addoption(
        "--callspec-base-url",
        dest="callspec_base_url",
        default=None,
        help="Override the server URL declared by the OpenAPI document.",
    )
    group.addoption(
        "--callspec-timeout",
        dest="callspec_timeout",
        type=float,
        default=None,
        help="Per-call timeout in seconds.",
    )
    parser.addini("callspec_openapi", "URL or file path of the OpenAPI document.", default=None)
    parser.addini("callspec_base_url", "Override the OpenAPI server URL.", default=None)
    parser.addini(
        "callspec_files",
        "Glob patterns of suite files to collect.",
        type="args",
        default=_DEFAULT_PATTERNS,
    )


_session_key = pytest.StashKey["CallSession"]()


def pytest_configure(config: pytest.Config) -> None:
    try:
        run_config = resolve_config(
            cli_openapi=_option_or_ini(config, "callspec_openapi"),
            cli_base_url=_option_or_ini(config, "callspec_base_url"),
            cli_timeout=config.getoption("callspec_timeout"),
            project_dir=config.rootpath,
        )
    except ConfigError as exc:
        raise pytest.UsageError(str(exc)) from exc
    config.stash[_session_key] = CallSession(config, run_config)


def _option_or_ini(config: pytest.Config, name: str) -> Optional[str]:
    return config.getoption(name) or config.getini(name) or None


def pytest_unconfigure(config: pytest.Config) -> None:
    session = config.stash.get(_session_key, None)
    if session is not None:
        session.close()


def pytest_collect_file(file_path: Path, parent: pytest.Collector) -> Optional[pytest.Collector]:
    session = parent.config.stash.get(_session_key, None)
    if session is None or not session.enabled:
        return None
    patterns = parent.config.getini("callspec_files") or _DEFAULT_PATTERNS
    if any(fnmatch.fnmatch(file_path.name, pattern) for pattern in patterns):
        return CallSuiteFile.from_parent(parent, path=file_path)
    return None


class CallSession:
    """Session-wide runner, built on first use and closed at unconfigure.

    Loading the OpenAPI document is deferred until the first item runs so
    that ``--collect-only`` never touches the network. A failure to load it
    is remembered and reported by every item.
    """

    def __init__(self, config: pytest.Config, run_config: RunConfig) -> None:
        self._config = config
        self.run_config = run_config
        self._runner: Optional[CallRunner] = None
        self._setup_error: Optional[CallspecError] = None

    @property
    def enabled(self) -> bool:
        return self.run_config.openapi is not None

    @property
    def runner(self) -> CallRunner:
        if self._setup_error is not None:
            raise self._setup_error
        if self._runner is None:
            try:
                self._runner = self._open_runner()
            except CallspecError as exc:
                self._setup_error = exc
                raise
        return self._runner

    def _open_runner(self) -> CallRunner:
        assert self.run_config.openapi is not None
        set_output(OutputManager(verbose=self._config.getoption("verbose") > 1))
        index = OperationIndex.build(load_spec(self.run_config.openapi))
        logger.debug("Indexed %d operations from %s", len(index), self.run_config.openapi)
        transport = self._config.hook.pytest_callspec_transport(config=self._config)
        runner = CallRunner(self.run_config, index, transport=transport)
        return runner.__enter__()

    def close(self) -> None:
        if self._runner is not None:
            self._runner.__exit__(None, None, None)
            self._runner = None


class CallSuiteFile(pytest.File):
    """A suite file; yields one :class:`CallItem` per call, in order."""

    def collect(self) -> Iterator[CallItem]:
        try:
            suite = load_suite(self.path)
        except CallspecError as exc:
            raise self.CollectError(str(exc)) from exc
        for position, call in enumerate(suite.calls):
            yield CallItem.from_parent(
                self,
                name=call.display_name,
                call=call,
                base_dir=suite.base_dir,
                position=position,
            )


class CallItem(pytest.Item):
    """One call of a suite file."""

    def __init__(
        self,
        *,
        call: CallSpec,
        base_dir: Path,
        position: int,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.call = call
        self.base_dir = base_dir
        self.position = position

    def runtest(self) -> None:
        session = self.config.stash[_session_key]
        session.runner.run_call(self.call, self.base_dir)

    def repr_failure(self, excinfo: pytest.ExceptionInfo[BaseException], style=None):  # noqa: ANN001, ANN201
        if isinstance(excinfo.value, CallspecError):
            return f"{self.call.call} ({type(excinfo.value).__name__}): {excinfo.value}"
        return super().repr_failure(excinfo, style=style)

    def reportinfo(self) -> tuple[Path, Optional[int], str]:
        return self.path, None, f"{self.call.call}: {self.name}"
