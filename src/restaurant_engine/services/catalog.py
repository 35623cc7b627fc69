from typing import Dict, Iterable, List, Optional

from restaurant_engine.schemas.menu import MenuItem


class Catalog:
    """Меню в памяти: id -> MenuItem. Загружается один раз из БД."""

    def __init__(self, items: Iterable[MenuItem] = ()):
        self._items: Dict[int, MenuItem] = {}
        self.load(items)

    def load(self, items: Iterable[MenuItem]) -> None:
        self._items = {item.id: item for item in items}

    def get_menu_item(self, menu_item_id: int) -> Optional[MenuItem]:
        return self._items.get(menu_item_id)

    def list_menu_items(self) -> List[MenuItem]:
        return sorted(self._items.values(), key=lambda item: item.id)

    def max_id(self) -> Optional[int]:
        return max(self._items) if self._items else None

    def __len__(self) -> int:
        return len(self._items)
