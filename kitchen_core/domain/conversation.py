from dataclasses import dataclass, field
from typing import Iterator, List, Tuple

from .models import Turn


@dataclass
class Conversation:
    """单个会话持有的对话记录，只追加、整体重置，不做中间删改。

    snapshot()/restore() 用于发送失败时回滚到发送前的状态。
    """

    turns: List[Turn] = field(default_factory=list)

    @classmethod
    def seeded(cls, greeting: str) -> "Conversation":
        return cls(turns=[Turn.assistant_text(greeting)])

    def append(self, turn: Turn) -> None:
        self.turns.append(turn)

    def reset(self, greeting: str) -> None:
        self.turns = [Turn.assistant_text(greeting)]

    def snapshot(self) -> Tuple[Turn, ...]:
        return tuple(self.turns)

    def restore(self, snapshot: Tuple[Turn, ...]) -> None:
        self.turns = list(snapshot)

    def __len__(self) -> int:
        return len(self.turns)

    def __iter__(self) -> Iterator[Turn]:
        return iter(self.turns)
