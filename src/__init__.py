"""
Compute Engine Managed Instance Group Image Rollout Tool.
"""

from clients import ComputeRestClient
from config import RolloutConfig
from errors import NotFoundError, ProviderError, RolloutError, SafetyAbort
from groups import repoint_group, resize_group, retry_call, wait_for_convergence
from images import provision_template, resolve_image
from log_utils import setup_logging
from models import (
    Image,
    InstanceGroup,
    LaunchTemplate,
    ManagedInstance,
    RecreateResult,
    RolloutRequest,
    RolloutState,
)
from rollout import RolloutDriver

__all__ = [
    "ComputeRestClient",
    "RolloutConfig",
    "NotFoundError",
    "ProviderError",
    "RolloutError",
    "SafetyAbort",
    "repoint_group",
    "resize_group",
    "retry_call",
    "wait_for_convergence",
    "provision_template",
    "resolve_image",
    "setup_logging",
    "Image",
    "InstanceGroup",
    "LaunchTemplate",
    "ManagedInstance",
    "RecreateResult",
    "RolloutRequest",
    "RolloutState",
    "RolloutDriver",
]
