from collections.abc import Callable


PointerListener = Callable[[str], None]


class PointerEvents:
    """Document-level pointer-down listeners.

    Targets are slash-separated element paths such as ``"phone/country/3"``.
    """

    def __init__(self) -> None:
        self._listeners: list[PointerListener] = []

    def add_listener(self, listener: PointerListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: PointerListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def pointer_down(self, target: str) -> None:
        for listener in list(self._listeners):
            listener(target)
