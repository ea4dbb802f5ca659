"""Auto-eat policy: eat the first edible stack when the food bar runs low.

``trigger()`` is called on every health/food update. It decides
synchronously, takes the in-flight guard before the first ``await`` and
hands the eat sequence to a background task. Updates that arrive while a
sequence is running are dropped, never queued.

Edibility comes from the client's food registry. Some game-data versions
cannot provide one; then item names are matched against
``FALLBACK_FOODS`` by substring.
"""

import logging
from collections.abc import Callable, Collection, Iterable, Mapping
from typing import Any

from afkbot.bot.config import MAX_FOOD, AutoEatConfig
from afkbot.bot.errors import BotError
from afkbot.bot.models import (
    ConsumeAction,
    EquipAction,
    InventoryItem,
    Session,
    Statistics,
)
from afkbot.bot.session import GameSessionAdapter
from afkbot.lib.guards import InFlightGuard
from afkbot.lib.tasks import BackgroundTasks

logger = logging.getLogger(__name__)

FALLBACK_FOODS: tuple[str, ...] = (
    "apple",
    "bread",
    "cooked_beef",
    "cooked_chicken",
    "cooked_cod",
    "cooked_mutton",
    "cooked_porkchop",
    "cooked_rabbit",
    "cooked_salmon",
    "cookie",
    "golden_apple",
    "enchanted_golden_apple",
    "golden_carrot",
    "melon_slice",
    "mushroom_stew",
    "beetroot_soup",
    "rabbit_stew",
    "baked_potato",
    "beef",
    "carrot",
    "chicken",
    "cod",
    "mutton",
    "porkchop",
    "potato",
    "rabbit",
    "salmon",
    "dried_kelp",
    "sweet_berries",
)


def is_edible(name: str, registry: Mapping[str, Any] | None) -> bool:
    """Whether an item name is food, by registry or by fallback names."""
    if registry is not None:
        return name in registry
    return any(food in name for food in FALLBACK_FOODS)


def select_food(
    items: Iterable[InventoryItem],
    *,
    banned: Collection[str] = (),
    registry: Mapping[str, Any] | None = None,
) -> InventoryItem | None:
    """First edible, non-banned stack in inventory order."""
    for item in items:
        if not item.name or item.name in banned:
            continue
        if is_edible(item.name, registry):
            return item
    return None


class AutoEatPolicy:
    """Single-flight eat sequence driven by food updates.

    Args:
        config: Live auto-eat settings (toggled by /toggle eat).
        adapter: Adapter used for inventory, equip and consume.
        stats: Statistics; this policy is the only writer of food_eaten.
        current_session: Returns the orchestrator's current session.
        echo: Console output callback.
        tasks: Where the eat sequence runs.
    """

    def __init__(
        self,
        config: AutoEatConfig,
        adapter: GameSessionAdapter,
        stats: Statistics,
        current_session: Callable[[], Session | None],
        echo: Callable[[str], None],
        tasks: BackgroundTasks,
    ) -> None:
        self.config = config
        self._adapter = adapter
        self._stats = stats
        self._current_session = current_session
        self._echo = echo
        self._tasks = tasks
        self.guard = InFlightGuard()

    @property
    def eating(self) -> bool:
        return self.guard.held

    def trigger(self, food: int) -> bool:
        """Start an eat sequence if one is needed. Returns whether it started."""
        if not self.config.enabled or self.guard.held:
            return False
        session = self._current_session()
        if session is None or not session.connected:
            return False
        if food >= self.config.start_at:
            return False
        self.guard.acquire()
        self._tasks.spawn(self.eat(session, food), name="auto-eat")
        return True

    async def eat(self, session: Session, food: int) -> None:
        """Select, equip and consume one food item. Always releases the guard."""
        eaten = False
        try:
            eaten = await self._eat(session, food)
        except BotError as e:
            self._echo(f"[AutoEat] Error: {e}")
        except Exception as e:
            logger.exception("Auto-eat sequence failed")
            self._echo(f"[AutoEat] Error: {e}")
        finally:
            self.guard.release()
        if eaten:
            self._stats.food_eaten += 1
            current = (await self._adapter.status(session)).food
            self._echo(f"[AutoEat] Done eating (Food: {current}/{MAX_FOOD})")

    async def _eat(self, session: Session, food: int) -> bool:
        items = await self._adapter.inventory(session)
        if not items:
            self._echo(f"[AutoEat] No items in inventory (Food: {food}/{MAX_FOOD})")
            return False

        registry = await self._adapter.food_registry(session)
        choice = select_food(
            items, banned=self.config.banned_foods, registry=registry
        )
        if choice is None:
            self._echo(f"[AutoEat] No food found (Food: {food}/{MAX_FOOD})")
            return False

        self._echo(f"[AutoEat] Eating {choice.name} (Food: {food}/{MAX_FOOD})")
        await self._adapter.perform(session, EquipAction(item=choice, destination="hand"))
        await self._adapter.perform(session, ConsumeAction())
        return True
