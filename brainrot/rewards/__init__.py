"""Rewarded-ad credits: ad watch quotas and the grant-credit flow."""

from brainrot.rewards.ad_limits import AdWatchLimiter
from brainrot.rewards.service import RewardService

__all__ = ["AdWatchLimiter", "RewardService"]
