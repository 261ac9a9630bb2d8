"""
Data models for the managed instance group image rollout.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


def derived_template_name(image_name: str) -> str:
    """Name of the instance template that boots the given image."""
    return f"{image_name}-template"


@dataclass
class Image:
    """Compute Engine image."""

    name: str
    self_link: str = ""

    @classmethod
    def from_api(cls, data: Dict) -> "Image":
        return cls(name=data["name"], self_link=data.get("selfLink", ""))


@dataclass
class LaunchTemplate:
    """Instance template; body is the full API resource."""

    name: str
    body: Dict = field(default_factory=dict)

    @classmethod
    def from_api(cls, data: Dict) -> "LaunchTemplate":
        return cls(name=data["name"], body=data)

    @property
    def source_image(self) -> str:
        disks = self.body.get("properties", {}).get("disks", [])
        if not disks:
            return ""
        return disks[0].get("initializeParams", {}).get("sourceImage", "")


@dataclass
class InstanceGroup:
    """Managed instance group."""

    name: str
    zone: str
    instance_template: str  # template URL currently referenced by the group
    target_size: int

    @classmethod
    def from_api(cls, data: Dict, zone: str) -> "InstanceGroup":
        return cls(
            name=data["name"],
            zone=zone,
            instance_template=data.get("instanceTemplate", ""),
            target_size=int(data.get("targetSize", 0)),
        )


@dataclass
class ManagedInstance:
    """Member of a managed instance group."""

    instance: str  # full instance URL
    current_action: str = "NONE"

    @classmethod
    def from_api(cls, data: Dict) -> "ManagedInstance":
        return cls(
            instance=data.get("instance", ""),
            current_action=data.get("currentAction", "NONE"),
        )

    @property
    def short_name(self) -> str:
        return self.instance.split("/")[-1]

    @property
    def is_idle(self) -> bool:
        return self.current_action == "NONE"


@dataclass(frozen=True)
class RolloutRequest:
    """Operator-supplied rollout parameters."""

    project_id: str
    image_id: str
    zone: str
    instance_group: str
    instance_template: str  # reference template to clone

    def missing_fields(self) -> List[str]:
        return [
            name
            for name in (
                "project_id",
                "image_id",
                "zone",
                "instance_group",
                "instance_template",
            )
            if not getattr(self, name)
        ]

    def validate(self) -> None:
        missing = self.missing_fields()
        if missing:
            raise ValueError(f"Missing rollout parameters: {', '.join(missing)}")


class RolloutState(Enum):
    """Rollout driver states."""

    INIT = "init"
    IMAGE_RESOLVED = "image_resolved"
    TEMPLATE_READY = "template_ready"
    GROUP_REPOINTED = "group_repointed"
    ROLLING_OUT = "rolling_out"
    DONE = "done"
    FAILED = "failed"


@dataclass
class RecreateResult:
    """Result of recreating one instance."""

    instance_name: str
    status: str  # "success", "failed"
    start_time: Optional[float] = None
    end_time: Optional[float] = None
    duration_seconds: Optional[float] = None
    polls: int = 0
    error_message: Optional[str] = None
