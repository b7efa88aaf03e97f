import re
import uuid
from typing import Optional

from pydantic import BaseModel

_MOBILE = re.compile(r"Mobile|Android|iPhone|iPad", re.IGNORECASE)
_DESKTOP = re.compile(r"Windows|Macintosh|Mac OS|Linux", re.IGNORECASE)


class DeviceInfo(BaseModel):
    """토큰 발급 시 기록되는 기기 정보"""

    type: str = "unknown"  # mobile | desktop | unknown
    raw_user_agent: Optional[str] = None
    session_hint: str

    @classmethod
    def from_user_agent(
        cls, user_agent: Optional[str], session_hint: Optional[str] = None
    ) -> "DeviceInfo":
        return cls(
            type=detect_device_type(user_agent),
            raw_user_agent=user_agent,
            session_hint=session_hint or str(uuid.uuid4()),
        )


def detect_device_type(user_agent: Optional[str]) -> str:
    if not user_agent:
        return "unknown"
    # Android UA 에도 "Linux" 가 포함되므로 mobile 먼저 검사
    if _MOBILE.search(user_agent):
        return "mobile"
    if _DESKTOP.search(user_agent):
        return "desktop"
    return "unknown"
