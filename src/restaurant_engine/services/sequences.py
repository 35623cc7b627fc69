import re
from typing import Iterable, Optional


class SequenceGenerator:
    """
    Монотонный счётчик идентификаторов.

    После загрузки из БД вызывается reconcile(max_seen), чтобы новые
    сущности не пересекались с уже сохранёнными.
    """

    def __init__(self, start: int = 1):
        self._next = start

    def next(self) -> int:
        value = self._next
        self._next += 1
        return value

    def peek(self) -> int:
        return self._next

    def reconcile(self, max_seen: Optional[int]) -> None:
        if max_seen is not None and max_seen + 1 > self._next:
            self._next = max_seen + 1


class CustomerIdSequence(SequenceGenerator):
    PREFIX = "CUST"
    _pattern = re.compile(r"^CUST(\d+)$", re.IGNORECASE)

    def __init__(self, start: int = 1001):
        super().__init__(start)

    def next_id(self) -> str:
        return f"{self.PREFIX}{self.next()}"

    @classmethod
    def suffix(cls, customer_id: str) -> Optional[int]:
        match = cls._pattern.match(customer_id or "")
        return int(match.group(1)) if match else None

    def reconcile_ids(self, customer_ids: Iterable[str]) -> None:
        suffixes = [s for s in (self.suffix(cid) for cid in customer_ids) if s is not None]
        self.reconcile(max(suffixes) if suffixes else None)
