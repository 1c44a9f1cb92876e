from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from .backups import BackupPolicyResolver
from .config import AppConfig


@dataclass
class RunContext:
    """Everything one xtool invocation shares across the files it processes."""
    config: AppConfig
    verbosity: int = 0
    start_time: datetime = field(default_factory=datetime.now)
    backups: Optional[BackupPolicyResolver] = None

    def __post_init__(self) -> None:
        if self.backups is None:
            self.backups = BackupPolicyResolver(self.config.home)

    @property
    def verbose(self) -> bool:
        return self.verbosity >= 1

    @property
    def echo_commands(self) -> bool:
        return self.verbosity >= 2


@dataclass
class BatchResult:
    successes: List[str] = field(default_factory=list)
    failures: Dict[str, Exception] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failures

    def exit_code(self) -> int:
        return 0 if self.ok else 1
