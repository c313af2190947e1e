from typing import Final, Sequence

import pygame
from backend.controller import Controller
from pychip8.constants import DISPLAY_COLS, DISPLAY_ROWS
from pychip8.render import Color, Rect


class PygameSurface:
    """``RenderSurface`` backed by a pygame window of ``scale`` physical pixels per CHIP-8 pixel."""

    def __init__(self, title: str, controller: Controller, scale: int = 10) -> None:
        self.controller: Final[Controller] = controller
        self._width: Final[int] = DISPLAY_COLS * scale
        self._height: Final[int] = DISPLAY_ROWS * scale

        pygame.init()
        self.screen: pygame.Surface = pygame.display.set_mode((self._width, self._height))
        pygame.display.set_caption(title)
        self.open: bool = True

    def logical_width(self) -> int:
        return self._width

    def logical_height(self) -> int:
        return self._height

    def clear(self, color: Color) -> None:
        self.screen.fill(color.to_tuple())

    def draw_filled_rects(self, rects: Sequence[Rect], color: Color) -> None:
        rgb = color.to_tuple()
        for rect in rects:
            pygame.draw.rect(self.screen, rgb, pygame.Rect(rect.x, rect.y, rect.w, rect.h))

    def present(self) -> None:
        pygame.display.flip()

    def set_caption(self, title: str) -> None:
        pygame.display.set_caption(title)

    def poll(self) -> bool:
        """Drain pending events without blocking. Returns False once the window should close."""
        events = pygame.event.get()
        self.controller.update(events)

        for event in events:
            if event.type == pygame.QUIT:
                return False
            if event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE:
                return False
        return True

    def close(self) -> None:
        if not self.open:
            return
        pygame.quit()
        self.open = False
