"""Policy layer — tunable parameters loaded from the config directory."""

from promoter_commission.policy.resolver import PolicyResolver

__all__ = ["PolicyResolver"]
