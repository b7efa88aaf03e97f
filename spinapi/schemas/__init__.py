from .user import User, UserBalance
from .results import GameResultResponse, SpinResultCreate, SpinResultResponse
from .points import CreditOutcome, UserPointsStatus
from .auth import IssuedToken, TokenInfo, GameLoginResponse
from .rewards import ProductResponse, RewardResponse, RewardClaimResponse
from .leaderboard import LeaderboardEntry, LeaderboardSnapshot, Timeframe
