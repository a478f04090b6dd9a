"""Store-local time and category sale windows.

Windows are evaluated at a fixed UTC offset instead of server-local time so
that every deployment agrees on the store's clock.
"""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta, timezone

WEEKDAY_NAMES = ("Domingo", "Segunda", "Terça", "Quarta", "Quinta", "Sexta", "Sábado")


@dataclass(frozen=True)
class CategoryWindow:
    """Hours during which a category may be sold.

    Attributes:
        category: Category name the window applies to
        available_until: Local hour (exclusive) after which sales stop
        available_from: Local hour (inclusive) from which sales start
        message: Text shown to the customer when outside the window
    """

    category: str
    available_until: int | None = None
    available_from: int | None = None
    message: str = ""

    def is_open(self, hour: int) -> bool:
        if self.available_until is not None and hour >= self.available_until:
            return False
        if self.available_from is not None and hour < self.available_from:
            return False
        return True


DEFAULT_CATEGORY_WINDOWS: tuple[CategoryWindow, ...] = (
    CategoryWindow(
        category="Lanches",
        available_until=10,
        message="Lanches disponíveis somente até 10h",
    ),
    CategoryWindow(
        category="Almoço",
        available_from=11,
        message="Almoço disponível a partir das 11h",
    ),
)

LUNCH_CATEGORY = "Almoço"

# Lunch is served Monday to Saturday (0 = Sunday)
LUNCH_WEEKDAYS = range(1, 7)
LUNCH_CLOSED_MESSAGE = "Almoço disponível somente de segunda a sábado"


class StoreClock:
    """Converts UTC instants to store-local time and checks sale windows."""

    def __init__(
        self,
        utc_offset_hours: int = -3,
        windows: tuple[CategoryWindow, ...] = DEFAULT_CATEGORY_WINDOWS,
    ) -> None:
        self.tz = timezone(timedelta(hours=utc_offset_hours))
        self.windows = {w.category.casefold(): w for w in windows}

    def now(self) -> datetime:
        return datetime.now(UTC)

    def local(self, instant: datetime | None = None) -> datetime:
        return (instant or self.now()).astimezone(self.tz)

    def weekday(self, instant: datetime | None = None) -> int:
        """Store-local weekday with 0 = Sunday."""
        return (self.local(instant).weekday() + 1) % 7

    def serves_lunch(self, instant: datetime | None = None) -> bool:
        return self.weekday(instant) in LUNCH_WEEKDAYS

    def closed_window(
        self, category_name: str | None, instant: datetime | None = None
    ) -> CategoryWindow | None:
        """Return the window blocking this category right now, if any."""
        if not category_name:
            return None
        window = self.windows.get(category_name.casefold())
        if window is None or window.is_open(self.local(instant).hour):
            return None
        return window
