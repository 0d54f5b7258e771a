# Registers every table on Base.metadata
from event_rewards.models.event import Event  # noqa: F401
from event_rewards.models.reward import Reward  # noqa: F401
from event_rewards.models.event_participation import EventParticipation  # noqa: F401
from event_rewards.models.reward_request import RewardRequest  # noqa: F401
from event_rewards.models.reward_request_claim import RewardRequestClaim  # noqa: F401
from event_rewards.models.user_reward import UserReward  # noqa: F401
from event_rewards.models.event_log import EventLog  # noqa: F401
