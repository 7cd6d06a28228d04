"""Mouse class for pointer input."""

import logging
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from cdpctl.actor.page import Page

logger = logging.getLogger(__name__)

MouseButton = Literal['left', 'right', 'middle', 'back', 'forward', 'none']


class Mouse:
    """Pointer input for a page.

    Every action is sent through the owning page's current session, looked up
    at call time. Only the pointer position is kept between actions.
    """

    def __init__(self, page: 'Page'):
        self._page = page
        self._current_x: float = 0
        self._current_y: float = 0

    @property
    def position(self) -> tuple[float, float]:
        """Get the current mouse position."""
        return (self._current_x, self._current_y)

    async def _dispatch(self, params: dict) -> None:
        await self._page.call('Input.dispatchMouseEvent', params)

    async def move(self, x: float, y: float, steps: int = 1) -> None:
        """Move mouse to the specified coordinates.

        Args:
            x: Target X coordinate
            y: Target Y coordinate
            steps: Number of intermediate steps for smooth movement
        """
        start_x, start_y = self._current_x, self._current_y
        steps = max(1, steps)
        for i in range(1, steps + 1):
            t = i / steps
            current_x = start_x + (x - start_x) * t
            current_y = start_y + (y - start_y) * t
            await self._dispatch({'type': 'mouseMoved', 'x': current_x, 'y': current_y})
            self._current_x, self._current_y = current_x, current_y

    async def down(self, button: MouseButton = 'left', click_count: int = 1) -> None:
        """Press mouse button down at current position."""
        await self._dispatch({
            'type': 'mousePressed',
            'x': self._current_x,
            'y': self._current_y,
            'button': button,
            'clickCount': click_count,
        })

    async def up(self, button: MouseButton = 'left', click_count: int = 1) -> None:
        """Release mouse button at current position."""
        await self._dispatch({
            'type': 'mouseReleased',
            'x': self._current_x,
            'y': self._current_y,
            'button': button,
            'clickCount': click_count,
        })

    async def click(
        self,
        x: float | None = None,
        y: float | None = None,
        button: MouseButton = 'left',
        click_count: int = 1,
    ) -> None:
        """Click at the given coordinates, or at the current position.

        Args:
            x: X coordinate
            y: Y coordinate
            button: Mouse button ('left', 'right', 'middle')
            click_count: Number of clicks (1 for single, 2 for double)
        """
        if x is not None and y is not None:
            await self.move(x, y)
        await self.down(button, click_count)
        await self.up(button, click_count)

    async def double_click(self, x: float | None = None, y: float | None = None, button: MouseButton = 'left') -> None:
        await self.click(x, y, button, click_count=2)

    async def scroll(self, delta_x: float = 0, delta_y: float = 0) -> None:
        """Scroll with the mouse wheel at the current position.

        Args:
            delta_x: Horizontal scroll amount (positive = right)
            delta_y: Vertical scroll amount (positive = down)
        """
        await self._dispatch({
            'type': 'mouseWheel',
            'x': self._current_x,
            'y': self._current_y,
            'deltaX': delta_x,
            'deltaY': delta_y,
        })

    async def drag(self, from_x: float, from_y: float, to_x: float, to_y: float, steps: int = 10) -> None:
        """Drag from one point to another."""
        await self.move(from_x, from_y)
        await self.down()
        await self.move(to_x, to_y, steps=steps)
        await self.up()
