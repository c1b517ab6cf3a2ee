import re
from collections.abc import Callable
from datetime import date, timedelta
from typing import NamedTuple

from pizzeria.app.widgets.events import PointerEvents


PHONE_DISALLOWED = re.compile(r"[^0-9\s-]")


class CountryCode(NamedTuple):
    code: str
    country: str
    flag: str


# Dial codes may repeat across countries (+1).
COUNTRY_CODES: tuple[CountryCode, ...] = (
    CountryCode("+39", "Italy", "🇮🇹"),
    CountryCode("+33", "France", "🇫🇷"),
    CountryCode("+49", "Germany", "🇩🇪"),
    CountryCode("+34", "Spain", "🇪🇸"),
    CountryCode("+44", "United Kingdom", "🇬🇧"),
    CountryCode("+1", "United States", "🇺🇸"),
    CountryCode("+41", "Switzerland", "🇨🇭"),
    CountryCode("+43", "Austria", "🇦🇹"),
    CountryCode("+31", "Netherlands", "🇳🇱"),
    CountryCode("+32", "Belgium", "🇧🇪"),
    CountryCode("+351", "Portugal", "🇵🇹"),
    CountryCode("+30", "Greece", "🇬🇷"),
    CountryCode("+7", "Russia", "🇷🇺"),
    CountryCode("+86", "China", "🇨🇳"),
    CountryCode("+81", "Japan", "🇯🇵"),
    CountryCode("+91", "India", "🇮🇳"),
    CountryCode("+55", "Brazil", "🇧🇷"),
    CountryCode("+54", "Argentina", "🇦🇷"),
    CountryCode("+61", "Australia", "🇦🇺"),
    CountryCode("+1", "Canada", "🇨🇦"),
)
DIAL_CODES = frozenset(country.code for country in COUNTRY_CODES)
DEFAULT_COUNTRY_CODE = "+39"


def sanitize_phone(raw: str) -> str:
    """Keep digits, whitespace and hyphens only."""
    return PHONE_DISALLOWED.sub("", raw)


def _is_within(target: str, widget_id: str) -> bool:
    return target == widget_id or target.startswith(f"{widget_id}/")


class Dropdown:
    """Open/closed state shared by every picker; closes on outside pointer-down."""

    def __init__(self, widget_id: str, label: str, error: str | None = None) -> None:
        self.widget_id = widget_id
        self.label = label
        self.error = error
        self.is_open = False
        self._events: PointerEvents | None = None

    def open(self) -> None:
        self.is_open = True

    def close(self) -> None:
        self.is_open = False

    def toggle(self) -> None:
        self.is_open = not self.is_open

    def mount(self, events: PointerEvents) -> None:
        self.unmount()
        events.add_listener(self._on_pointer_down)
        self._events = events

    def unmount(self) -> None:
        if self._events is not None:
            self._events.remove_listener(self._on_pointer_down)
            self._events = None

    def _on_pointer_down(self, target: str) -> None:
        if not _is_within(target, self.widget_id):
            self.close()


class DatePicker(Dropdown):
    def __init__(
        self,
        on_change: Callable[[str], None],
        *,
        value: str = "",
        label: str = "Date",
        placeholder: str = "Select a date",
        widget_id: str = "date",
        clock: Callable[[], date] = date.today,
    ) -> None:
        super().__init__(widget_id, label)
        self.value = value
        self.placeholder = placeholder
        self._on_change = on_change
        self._clock = clock
        self.visible_month = self.today.replace(day=1)

    @property
    def today(self) -> date:
        return self._clock()

    @property
    def display(self) -> str:
        if not self.value:
            return self.placeholder
        return date.fromisoformat(self.value).strftime("%d/%m/%Y")

    def next_month(self) -> None:
        # Whole calendar months; a fixed 31-day jump could skip February.
        month = self.visible_month
        if month.month == 12:
            self.visible_month = month.replace(year=month.year + 1, month=1)
        else:
            self.visible_month = month.replace(month=month.month + 1)

    def prev_month(self) -> None:
        month = self.visible_month
        if month.month == 1:
            self.visible_month = month.replace(year=month.year - 1, month=12)
        else:
            self.visible_month = month.replace(month=month.month - 1)

    def calendar_days(self) -> list[date]:
        """Monday-first weeks covering the visible month."""
        first = self.visible_month
        following = first.replace(day=28) + timedelta(days=4)
        last = following - timedelta(days=following.day)
        start = first - timedelta(days=first.weekday())
        end = last + timedelta(days=6 - last.weekday())
        return [start + timedelta(days=offset) for offset in range((end - start).days + 1)]

    def is_disabled(self, day: date) -> bool:
        return day < self.today

    def select(self, day: date) -> None:
        if self.is_disabled(day):
            return
        self.value = day.isoformat()
        self._on_change(self.value)
        self.close()

    def select_today(self) -> None:
        self.select(self.today)


class TimePicker(Dropdown):
    def __init__(
        self,
        on_change: Callable[[str], None],
        *,
        value: str = "",
        options: list[str] | None = None,
        label: str = "Time",
        placeholder: str = "Select a time",
        empty_text: str = "No time slots available",
        widget_id: str = "time",
    ) -> None:
        super().__init__(widget_id, label)
        self.value = value
        self.options = list(options or [])
        self.placeholder = placeholder
        self.empty_text = empty_text
        self._on_change = on_change

    @property
    def display(self) -> str:
        return self.value or self.placeholder

    @property
    def has_options(self) -> bool:
        return bool(self.options)

    def entries(self) -> list[tuple[str, bool]]:
        """(time, selected) pairs; empty when the no-slots placeholder shows."""
        return [(option, option == self.value) for option in self.options]

    def select(self, time: str) -> None:
        if time not in self.options:
            raise ValueError(f"{time!r} is not an available time")
        self.value = time
        self._on_change(time)
        self.close()


class PeopleSelector(Dropdown):
    """Stepper and dropdown over one party size clamped to [minimum, maximum]."""

    def __init__(
        self,
        on_change: Callable[[int], None],
        *,
        value: int = 1,
        minimum: int = 1,
        maximum: int = 10,
        label: str = "People",
        widget_id: str = "seats",
    ) -> None:
        if minimum > maximum:
            raise ValueError("minimum must not exceed maximum")
        super().__init__(widget_id, label)
        self.minimum = minimum
        self.maximum = maximum
        self.value = self.clamp(value)
        self._on_change = on_change

    def clamp(self, value: int) -> int:
        return max(self.minimum, min(self.maximum, value))

    @property
    def options(self) -> list[int]:
        return list(range(self.minimum, self.maximum + 1))

    @property
    def can_increment(self) -> bool:
        return self.value < self.maximum

    @property
    def can_decrement(self) -> bool:
        return self.value > self.minimum

    @staticmethod
    def describe(count: int) -> str:
        return f"{count} {'person' if count == 1 else 'people'}"

    def increment(self) -> None:
        if self.can_increment:
            self._set(self.value + 1)

    def decrement(self) -> None:
        if self.can_decrement:
            self._set(self.value - 1)

    def select(self, count: int) -> None:
        self._set(self.clamp(count))
        self.close()

    def _set(self, value: int) -> None:
        self.value = value
        self._on_change(value)


class PhoneInput(Dropdown):
    """Country-code selector plus a sanitized number field."""

    def __init__(
        self,
        on_phone_change: Callable[[str], None],
        on_country_code_change: Callable[[str], None],
        *,
        value: str = "",
        country_code: str = DEFAULT_COUNTRY_CODE,
        label: str = "Phone",
        placeholder: str = "Phone number",
        widget_id: str = "phone",
    ) -> None:
        super().__init__(widget_id, label)
        self.value = value
        self.country_code = country_code
        self.placeholder = placeholder
        self._on_phone_change = on_phone_change
        self._on_country_code_change = on_country_code_change

    @property
    def selected_country(self) -> CountryCode | None:
        return next((country for country in COUNTRY_CODES if country.code == self.country_code), None)

    def select_country(self, code: str) -> None:
        if code not in DIAL_CODES:
            raise ValueError(f"Unsupported country code {code!r}")
        self.country_code = code
        self._on_country_code_change(code)
        self.close()

    def input(self, raw: str) -> None:
        self.value = sanitize_phone(raw)
        self._on_phone_change(self.value)
