"""上下文窗口裁剪。

按估算 token 数从最新一轮向前回溯，保留不超过预算的连续后缀；
被丢弃的较早轮次不做摘要。最新一轮（用户当前消息）无论多大都会发送。
"""

from dataclasses import dataclass
from typing import List, Sequence

from .models import Turn

# 每个图片片段固定计入的 token 数
MEDIA_TOKEN_COST = 100


@dataclass
class ContextWindow:
    history: List[Turn]
    current_turn: Turn
    estimated_tokens: int
    dropped_turns: int


def estimate_tokens(text: str | None) -> int:
    """按空白切分的词数粗略估算 token。"""

    return len(text.split()) if text else 0


def estimate_turn_size(turn: Turn, media_cost: int = MEDIA_TOKEN_COST) -> int:
    size = 0
    for part in turn.parts:
        size += estimate_tokens(part.text)
        if part.media is not None:
            size += media_cost
    return size


def build_context(
    conversation: Sequence[Turn],
    new_turn: Turn,
    budget: int,
    media_cost: int = MEDIA_TOKEN_COST,
) -> ContextWindow:
    """选出发送给模型的历史窗口。

    Args:
        conversation: 发送前的对话记录（不含 new_turn）。
        new_turn: 用户当前消息。
        budget: token 预算，软上限。

    Returns:
        ContextWindow，history 为 conversation 的连续后缀（顺序不变），
        current_turn 恒为 new_turn。
    """

    all_turns = list(conversation) + [new_turn]
    selected: List[Turn] = []
    total = 0
    for turn in reversed(all_turns):
        size = estimate_turn_size(turn, media_cost)
        if total + size > budget:
            break
        selected.insert(0, turn)
        total += size

    if not selected or selected[-1] is not new_turn:
        selected.append(new_turn)
        total += estimate_turn_size(new_turn, media_cost)

    return ContextWindow(
        history=selected[:-1],
        current_turn=selected[-1],
        estimated_tokens=total,
        dropped_turns=len(all_turns) - len(selected),
    )
