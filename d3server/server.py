"""Top-level server that starts, runs and stops its components."""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, Optional

_log = logging.getLogger("d3server.server")


class Component(ABC):
    """A server part with an init/run/shutdown life cycle."""

    @abstractmethod
    def init(self) -> bool:
        """Prepare the component; a false result means failure."""

    @abstractmethod
    def run(self) -> None:
        """Run the component, blocking until it is shut down."""

    @abstractmethod
    def shutdown(self) -> None:
        """Stop the component and make ``run`` return."""


class Server:
    """Coordinates the Battle.net, game and REST servers."""

    def __init__(
        self,
        config: Any,
        db_manager: Any,
        battle_net_server: Component,
        game_server: Component,
        rest_server: Component,
        loop_interval: float = 1.0,
    ) -> None:
        self.config = config
        self.db_manager = db_manager
        self._battle_net_server = battle_net_server
        self._game_server = game_server
        self._rest_server = rest_server
        self._loop_interval = loop_interval
        self._lock = threading.Lock()
        self._running = False
        self._wake = threading.Event()
        self._threads: list[threading.Thread] = []
        _log.info("Server instance created")

    def _components(self) -> list[tuple[str, Component]]:
        return [
            ("Battle.net server", self._battle_net_server),
            ("game server", self._game_server),
            ("REST API server", self._rest_server),
        ]

    def init(self) -> None:
        """Initialise every component; raises RuntimeError on the first failure."""
        _log.info("Initializing server...")
        for name, component in self._components():
            try:
                ok = component.init()
            except Exception as exc:
                _log.critical("Exception during server initialization: %s", exc)
                raise RuntimeError(f"Exception initializing {name}: {exc}") from exc
            if ok is False:
                _log.error("Failed to initialize %s", name)
                raise RuntimeError(f"Failed to initialize {name}")
        _log.info("Server initialized successfully")

    def run(self) -> None:
        """Start every component in its own thread and block until shutdown."""
        with self._lock:
            if self._running:
                _log.warning("Server is already running")
                return
            self._running = True
            self._wake.clear()
        _log.info("Starting server components...")

        try:
            for name, component in self._components():
                thread = threading.Thread(
                    target=self._run_component,
                    args=(name, component),
                    name=name,
                    daemon=True,
                )
                self._threads.append(thread)
                thread.start()
            _log.info("All server components started")
            self._main_loop()
        except Exception as exc:
            _log.critical("Exception during server startup: %s", exc)
            self.shutdown()

    def shutdown(self) -> None:
        """Stop the components in reverse order and wait for their threads."""
        with self._lock:
            if not self._running:
                _log.warning("Server is not running")
                return
            self._running = False
            self._wake.set()
        _log.info("Shutting down server...")

        try:
            for name, component in reversed(self._components()):
                _log.debug("Shutting down %s", name)
                component.shutdown()
            current = threading.current_thread()
            for thread in self._threads:
                if thread is not current and thread.is_alive():
                    thread.join()
            self._threads.clear()
            _log.info("Server shutdown complete")
        except Exception as exc:
            _log.error("Exception during server shutdown: %s", exc)

    def is_running(self) -> bool:
        """Whether the server is between ``run`` and ``shutdown``."""
        with self._lock:
            return self._running

    @staticmethod
    def _run_component(name: str, component: Component) -> None:
        try:
            _log.debug("Starting %s thread", name)
            component.run()
        except Exception as exc:
            _log.error("Exception in %s thread: %s", name, exc)

    def _main_loop(self) -> None:
        _log.info("Entering main server loop")
        while self.is_running():
            self._wake.wait(self._loop_interval)
        _log.info("Exiting main server loop")