"""One-time engine initialization and the formatting entry points.

The engine loads the bundled default style profile exactly once per
process. The first caller runs the load; every concurrent caller, whether
it blocks on a thread or awaits in an event loop, waits on the same
future. A failed load is sticky: later calls get the same EngineError.
"""

import asyncio
import logging
import threading
import tomllib
from collections.abc import Callable, Mapping
from concurrent.futures import Future
from enum import Enum
from importlib import resources
from typing import Any, Optional, Union

from hongdown.config import options_from_toml
from hongdown.core.formatter import MarkdownFormatter
from hongdown.formatting.ir import FormatResult
from hongdown.formatting.options import FormatOptions, resolve_options

logger = logging.getLogger(__name__)

DEFAULT_PROFILE = "default.toml"

OptionsArg = Union[FormatOptions, Mapping[str, Any], None]


class EngineError(Exception):
    """The engine could not be initialized."""

    pass


class EngineState(str, Enum):
    """Lifecycle of the engine singleton."""

    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
    FAILED = "failed"


def load_engine_bytes() -> bytes:
    """Read the bundled default style profile."""
    return (resources.files("hongdown") / "data" / DEFAULT_PROFILE).read_bytes()


def init_engine(data: bytes) -> FormatOptions:
    """Turn the style profile bytes into the base options for every call.

    Raises:
        EngineError: If the profile is not valid UTF-8 TOML
        ConfigError: If the profile holds invalid option values
    """
    try:
        document = tomllib.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, tomllib.TOMLDecodeError) as e:
        raise EngineError(f"invalid style profile: {e}") from e
    return resolve_options(options_from_toml(document))


class Engine:
    """Lazily initialized formatting engine."""

    def __init__(
        self,
        loader: Callable[[], bytes] = load_engine_bytes,
        initializer: Callable[[bytes], FormatOptions] = init_engine,
    ) -> None:
        """Initialize the engine without loading anything yet.

        Args:
            loader: Supplies the profile bytes; called at most once
            initializer: Turns the bytes into base options
        """
        self._loader = loader
        self._initializer = initializer
        self._lock = threading.Lock()
        self._future: Optional[Future] = None
        self._state = EngineState.UNINITIALIZED

    @property
    def state(self) -> EngineState:
        return self._state

    def _claim(self) -> tuple[Future, bool]:
        """Return the shared future and whether the caller must run the load."""
        with self._lock:
            if self._future is not None:
                return self._future, False
            self._future = Future()
            self._state = EngineState.INITIALIZING
            return self._future, True

    def _initialize(self, future: Future) -> None:
        logger.debug("Initializing formatting engine")
        try:
            defaults = self._initializer(self._loader())
        except Exception as e:
            with self._lock:
                self._state = EngineState.FAILED
            logger.debug("Engine initialization failed: %s", e)
            if isinstance(e, EngineError):
                error = e
            else:
                error = EngineError(f"engine initialization failed: {e}")
                error.__cause__ = e
            future.set_exception(error)
            return
        with self._lock:
            self._state = EngineState.READY
        logger.debug("Formatting engine ready")
        future.set_result(defaults)

    def ensure_ready(self) -> FormatOptions:
        """Initialize on first use and return the base options.

        Raises:
            EngineError: If initialization failed, now or earlier
        """
        future, owner = self._claim()
        if owner:
            self._initialize(future)
        return future.result()

    async def ensure_ready_async(self) -> FormatOptions:
        """Coroutine form of ``ensure_ready``; the load runs off the event loop."""
        future, owner = self._claim()
        if owner:
            await asyncio.to_thread(self._initialize, future)
        return await asyncio.wrap_future(future)

    def _run(
        self, defaults: FormatOptions, text: str, options: OptionsArg, overrides: dict
    ) -> FormatResult:
        resolved = resolve_options(options, base=defaults, **overrides)
        return MarkdownFormatter(resolved).format(text)

    def format_with_warnings(
        self, text: str, options: OptionsArg = None, **overrides: Any
    ) -> FormatResult:
        """Format Markdown and return the output with table warnings.

        Args:
            text: Markdown source
            options: Sparse option mapping (snake_case or camelCase keys)
                or a FormatOptions instance
            **overrides: Option values applied over ``options``

        Raises:
            ConfigError: If an option value is invalid
            EngineError: If the engine could not be initialized
        """
        return self._run(self.ensure_ready(), text, options, overrides)

    def format(self, text: str, options: OptionsArg = None, **overrides: Any) -> str:
        """Format Markdown, discarding warnings."""
        return self.format_with_warnings(text, options, **overrides).output

    async def format_with_warnings_async(
        self, text: str, options: OptionsArg = None, **overrides: Any
    ) -> FormatResult:
        defaults = await self.ensure_ready_async()
        return self._run(defaults, text, options, overrides)

    async def format_async(self, text: str, options: OptionsArg = None, **overrides: Any) -> str:
        result = await self.format_with_warnings_async(text, options, **overrides)
        return result.output


# Global engine instance
_engine: Optional[Engine] = None
_engine_lock = threading.Lock()


def get_engine() -> Engine:
    """Get the global engine instance, creating it if needed."""
    global _engine
    with _engine_lock:
        if _engine is None:
            _engine = Engine()
        return _engine
