"""
결과 라벨에서 포인트 값을 추출한다.

원장 적립, 포인트 현황, 리포트 집계가 모두 이 함수 하나만 사용한다.

우선순위 (먼저 매칭되는 규칙 사용):
    1. 마커 단어("ពិន្ទុ") + 크메르 숫자  ->  자리값 변환
    2. 마커 단어 + ASCII 숫자
    3. 문자열 내 첫 번째 ASCII 숫자열
    4. 없으면 0

매칭된 값이 MAX_POINTS 를 넘으면 0 (잔액 컬럼에 담을 수 없는 라벨).
"""

import re
from typing import Any

from spinapi.config import settings

KHMER_DIGITS = "០១២៣៤៥៦៧៨៩"
_KHMER_TO_ASCII = str.maketrans(KHMER_DIGITS, "0123456789")
_ASCII_TO_KHMER = str.maketrans("0123456789", KHMER_DIGITS)

MARKER_WORD = settings.POINTS_MARKER_WORD

# 결과 1건이 적립할 수 있는 최대 포인트
MAX_POINTS = 2**31 - 1
_MAX_DIGITS = len(str(MAX_POINTS))

# \d 는 크메르 숫자(유니코드 Nd)도 매칭하므로 [0-9] 를 명시
_MARKER_KHMER = re.compile(re.escape(MARKER_WORD) + r"\s*([" + KHMER_DIGITS + r"]+)")
_MARKER_ASCII = re.compile(re.escape(MARKER_WORD) + r"\s*([0-9]+)")
_ANY_ASCII = re.compile(r"[0-9]+")


def khmer_to_int(digits: str) -> int:
    value = 0
    for glyph in digits:
        value = value * 10 + KHMER_DIGITS.index(glyph)
    return value


def _to_points(digits: str) -> int:
    """ASCII/크메르 숫자열 -> 포인트. 범위를 넘으면 0."""
    digits = digits.translate(_KHMER_TO_ASCII).lstrip("0")
    if not digits:
        return 0
    # int() 변환 한도 전에 길이로 거름
    if len(digits) > _MAX_DIGITS:
        return 0
    value = int(digits)
    return value if value <= MAX_POINTS else 0


def extract_points(label: Any) -> int:
    """라벨 문자열에서 포인트를 추출. 파싱 불가 입력은 0 (예외 없음)."""
    if not isinstance(label, str) or not label:
        return 0

    match = _MARKER_KHMER.search(label)
    if match:
        return _to_points(match.group(1))

    match = _MARKER_ASCII.search(label)
    if match:
        return _to_points(match.group(1))

    match = _ANY_ASCII.search(label)
    if match:
        return _to_points(match.group(0))

    return 0


def to_khmer_numerals(value: int) -> str:
    return str(value).translate(_ASCII_TO_KHMER)


def format_points_label(points: int, khmer: bool = True) -> str:
    """extract_points 의 역함수: 25 -> "ពិន្ទុ ២៥" (khmer=False 면 "ពិន្ទុ 25")"""
    digits = to_khmer_numerals(points) if khmer else str(points)
    return f"{MARKER_WORD} {digits}"
