"""SoulSkills Store — local-first persistence for a token collection.

Directory layout:
    ~/.soulskills/
        config.yaml     # name, symbol, authority
        state.json      # TokenState (owners, balances, skills, values, ...)
        events.jsonl    # one emitted event per line, oldest first
        .lock           # held across a load-modify-save cycle
"""

from __future__ import annotations

import fcntl
import json
import logging
import os
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from .models import (
    EventRecord,
    TokenConfig,
    TokenState,
    generate_config_yaml,
    parse_config_yaml,
)
from .token import SoulboundToken

logger = logging.getLogger("soulskills.store")


def _default_store_root() -> Path:
    """Resolve the default store root, respecting SOULSKILLS_HOME env var.

    Returns:
        Path: The store root directory.
    """
    env = os.environ.get("SOULSKILLS_HOME")
    if env:
        return Path(env)
    return Path("~/.soulskills").expanduser()


class TokenStore:
    """Loads and saves a SoulboundToken and its event log.

    Args:
        root: Base directory (default: SOULSKILLS_HOME or ~/.soulskills).
    """

    def __init__(self, root: Optional[Path] = None) -> None:
        self.root = (root or _default_store_root()).expanduser()
        self.config_path = self.root / "config.yaml"
        self.state_path = self.root / "state.json"
        self.events_path = self.root / "events.jsonl"
        self.lock_path = self.root / ".lock"

    def exists(self) -> bool:
        return self.state_path.exists()

    @contextmanager
    def lock(self) -> Iterator[None]:
        """Hold an exclusive lock on the collection.

        Wrap every load-modify-save cycle in this so concurrent processes
        apply their changes one after another. Blocks until the lock is free.
        """
        self.root.mkdir(parents=True, exist_ok=True)
        with open(self.lock_path, "w") as handle:
            fcntl.flock(handle, fcntl.LOCK_EX)
            try:
                yield
            finally:
                fcntl.flock(handle, fcntl.LOCK_UN)

    def initialize(self, token: SoulboundToken, force: bool = False) -> None:
        """Write a freshly deployed collection to disk.

        Raises:
            ValueError: If a collection already exists and force=False.
        """
        if self.exists() and not force:
            raise ValueError(
                f"A collection already exists at {self.root}. Use force=True to overwrite."
            )
        self.root.mkdir(parents=True, exist_ok=True)
        config = TokenConfig(name=token.name, symbol=token.symbol, authority=token.state.authority)
        self.config_path.write_text(generate_config_yaml(config))
        if self.events_path.exists():
            self.events_path.unlink()
        self.save(token)
        logger.info("Initialized collection '%s' at %s", token.name, self.root)

    def load(self) -> SoulboundToken:
        """Load the collection from disk.

        Raises:
            FileNotFoundError: If config.yaml or state.json is missing.
            ValueError: If state.json is not valid state.
        """
        config = parse_config_yaml(self.config_path)
        if not self.state_path.exists():
            raise FileNotFoundError(f"state.json not found: {self.state_path}")
        try:
            raw = json.loads(self.state_path.read_text())
        except json.JSONDecodeError as exc:
            raise ValueError(f"Corrupt state file {self.state_path}: {exc}") from exc

        state = TokenState.model_validate(raw)
        state.authority = config.authority
        return SoulboundToken(state, name=config.name, symbol=config.symbol)

    def save(self, token: SoulboundToken) -> None:
        """Persist the token state and flush its pending events."""
        self.root.mkdir(parents=True, exist_ok=True)
        tmp = self.state_path.with_suffix(".json.tmp")
        tmp.write_text(json.dumps(token.state.model_dump(), indent=2))
        os.replace(tmp, self.state_path)

        self.append_events(token.events)
        token.events.clear()

    def append_events(self, events: list) -> None:
        """Append events to the event log."""
        if not events:
            return
        with open(self.events_path, "a") as f:
            for event in events:
                f.write(json.dumps(event.model_dump(mode="json", by_alias=True)) + "\n")

    def read_events(self) -> list:
        """Read every logged event, oldest first."""
        if not self.events_path.exists():
            return []
        events = []
        for line in self.events_path.read_text().splitlines():
            if line.strip():
                events.append(EventRecord.model_validate({"entry": json.loads(line)}).entry)
        return events
