from typing import Iterable

import pygame
from pychip8.controller import Keypad
from pychip8.logger import log as _log


class Controller:
    """Feeds pygame keyboard events into a ``Keypad`` through its physical-key layout."""

    def __init__(self, keypad: Keypad) -> None:
        self.keypad = keypad

    def update(self, events: Iterable[pygame.event.Event]) -> None:
        """Update key states from pygame events"""
        for event in events:
            if event.type == pygame.KEYDOWN:
                self._handle(event.key, True)
            elif event.type == pygame.KEYUP:
                self._handle(event.key, False)
            elif event.type == pygame.WINDOWFOCUSLOST:
                # Key-up events are lost while unfocused; don't leave keys stuck down.
                self.keypad.reset()

    def _handle(self, key_code: int, down: bool) -> None:
        name = pygame.key.name(key_code)
        if self.keypad.handle(name, down):
            _log.debug(f"Key {name!r} {'down' if down else 'up'} -> {self.keypad!r}")

    def reset(self) -> None:
        """Clear all key states"""
        self.keypad.reset()
