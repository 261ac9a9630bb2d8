"""
Configuration management for the managed instance group image rollout.
"""

from dataclasses import dataclass

from models import RolloutRequest


@dataclass
class RolloutConfig:
    """Configuration for a rollout run."""

    project_id: str
    image_id: str
    zone: str
    instance_group: str
    instance_template: str
    poll_interval: float = 5.0
    cooldown: float = 15.0
    template_poll_interval: float = 1.0
    retry_attempts: int = 5
    retry_delay: float = 1.0
    verbose: bool = False

    @classmethod
    def from_args(cls, args) -> "RolloutConfig":
        """
        Create configuration from command-line arguments.

        Args:
            args: Parsed argparse arguments

        Returns:
            RolloutConfig instance
        """
        return cls(
            project_id=args.project,
            image_id=args.image_id,
            zone=args.zone,
            instance_group=args.instance_group,
            instance_template=args.instance_template,
            verbose=args.verbose,
        )

    def to_request(self) -> RolloutRequest:
        return RolloutRequest(
            project_id=self.project_id,
            image_id=self.image_id,
            zone=self.zone,
            instance_group=self.instance_group,
            instance_template=self.instance_template,
        )
