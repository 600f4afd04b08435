"""
models.py
- Snapshots of Rancher resources read once per run, plus the upgrade request we send back.
"""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Environment:
    id: str
    name: str

    @classmethod
    def from_api(cls, data):
        return cls(id=data.get("id", ""), name=data.get("name", ""))


@dataclass(frozen=True)
class Service:
    id: str
    name: str
    environment_id: str
    state: str
    actions: dict = field(default_factory=dict)
    launch_config: dict = field(default_factory=dict)
    secondary_launch_configs: list = field(default_factory=list)
    links: dict = field(default_factory=dict)

    @classmethod
    def from_api(cls, data):
        return cls(
            id=data.get("id", ""),
            name=data.get("name", ""),
            environment_id=data.get("environmentId") or "",
            state=data.get("state", ""),
            actions=dict(data.get("actions") or {}),
            launch_config=dict(data.get("launchConfig") or {}),
            secondary_launch_configs=list(data.get("secondaryLaunchConfigs") or []),
            links=dict(data.get("links") or {}),
        )

    def can(self, action):
        return action in self.actions


@dataclass(frozen=True)
class UpgradeRequest:
    """In-service rolling upgrade strategy for a single service."""

    image: str
    batch_size: int
    batch_interval_ns: int
    start_first: bool
    launch_config: dict = field(default_factory=dict)
    secondary_launch_configs: list = field(default_factory=list)

    @property
    def interval_millis(self):
        # Truncates toward zero, matching integer division of Go durations.
        millis = abs(self.batch_interval_ns) // 1_000_000
        return -millis if self.batch_interval_ns < 0 else millis

    def to_api(self):
        return {
            "inServiceStrategy": {
                "batchSize": self.batch_size,
                "intervalMillis": self.interval_millis,
                "launchConfig": self.launch_config,
                "secondaryLaunchConfigs": self.secondary_launch_configs,
                "startFirst": self.start_first,
            },
            "toServiceStrategy": {},
        }
