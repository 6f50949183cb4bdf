from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, asdict, field
from pathlib import Path
from typing import Optional, Dict, Any, Tuple

from dotenv import load_dotenv

from extractor_app.models import AGENT_ID


logger = logging.getLogger(__name__)

load_dotenv()

PROJECT_ROOT = Path(__file__).resolve().parents[1]
CONFIG_PATH = PROJECT_ROOT / "extractor_config.json"
STORAGE_PATH = PROJECT_ROOT / "extractor_storage.json"


@dataclass
class AgentConfig:
    base_url: str = "http://localhost:8000/agent"
    api_key: str = ""
    agent_id: str = AGENT_ID
    # None 表示不设超时，由调用方决定
    timeout: Optional[float] = None


@dataclass
class AppConfig:
    agent: AgentConfig = field(default_factory=AgentConfig)
    storage_path: str = str(STORAGE_PATH)
    env_overrides: Dict[str, Tuple[Any, Any]] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def load(cls, path: Path = CONFIG_PATH) -> "AppConfig":
        cfg = cls._load_file(path)
        return cfg.apply_env()

    @classmethod
    def _load_file(cls, path: Path) -> "AppConfig":
        if not path.exists():
            return cls()

        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except Exception:
            logger.warning("Ignoring unreadable config file %s", path)
            return cls()
        if not isinstance(raw, dict):
            return cls()

        data = raw.get("agent", {}) or {}
        known = {k: v for k, v in data.items() if k in asdict(AgentConfig())}
        return cls(
            agent=AgentConfig(**{**asdict(AgentConfig()), **known}),
            storage_path=raw.get("storage_path") or str(STORAGE_PATH),
        )

    def _override(self, name: str, value: Any) -> None:
        # remember what the file said so save() never writes env values back
        section, _, attr = name.rpartition(".")
        target = self.agent if section == "agent" else self
        self.env_overrides[name] = (getattr(target, attr), value)
        setattr(target, attr, value)

    def apply_env(self) -> "AppConfig":
        """Environment variables (or a .env file) win over the JSON file."""
        for env_key, name in (
            ("EXTRACTOR_AGENT_URL", "agent.base_url"),
            ("EXTRACTOR_API_KEY", "agent.api_key"),
            ("EXTRACTOR_AGENT_ID", "agent.agent_id"),
            ("EXTRACTOR_STORAGE_PATH", "storage_path"),
        ):
            value = os.getenv(env_key)
            if value is not None:
                self._override(name, value)
        timeout = os.getenv("EXTRACTOR_TIMEOUT")
        if timeout:
            try:
                self._override("agent.timeout", float(timeout))
            except ValueError:
                logger.warning("Invalid EXTRACTOR_TIMEOUT=%r, ignoring", timeout)
        return self

    def save(self, path: Path = CONFIG_PATH) -> None:
        agent = asdict(self.agent)
        data: Dict[str, Any] = {"agent": agent, "storage_path": self.storage_path}
        for name, (file_value, env_value) in self.env_overrides.items():
            section, _, attr = name.rpartition(".")
            target = agent if section == "agent" else data
            # values edited in the UI are saved; untouched env values are not
            if target[attr] == env_value:
                target[attr] = file_value
        path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
