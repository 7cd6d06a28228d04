"""Keyboard class for key input."""

import logging
from typing import TYPE_CHECKING, Any

from cdpctl.actor.utils import CHAR_KEYS, KEY_TEXT, MODIFIER_BITS, calculate_modifier_bitmask, get_key_info, split_combo

if TYPE_CHECKING:
    from cdpctl.actor.page import Page

logger = logging.getLogger(__name__)


class Keyboard:
    """Key input for a page, sent through the page's current session."""

    def __init__(self, page: 'Page'):
        self._page = page

    def _key_params(self, event_type: str, key: str, modifiers: int = 0) -> dict[str, Any]:
        code, vk_code = get_key_info(key)
        params: dict[str, Any] = {'type': event_type, 'key': key, 'modifiers': modifiers}
        if code:
            params['code'] = code
        if vk_code is not None:
            params['windowsVirtualKeyCode'] = vk_code
        if event_type == 'keyDown':
            text = KEY_TEXT.get(key, key if len(key) == 1 else None)
            # Control/Meta chords are shortcuts and insert no text.
            if text is not None and not modifiers & (MODIFIER_BITS['Control'] | MODIFIER_BITS['Meta']):
                params['text'] = text
        return params

    async def down(self, key: str, modifiers: int = 0) -> None:
        """Dispatch a keyDown for ``key``."""
        await self._page.call('Input.dispatchKeyEvent', self._key_params('keyDown', key, modifiers))

    async def up(self, key: str, modifiers: int = 0) -> None:
        """Dispatch a keyUp for ``key``."""
        await self._page.call('Input.dispatchKeyEvent', self._key_params('keyUp', key, modifiers))

    async def press(self, key: str) -> None:
        """Press a key or key combination.

        Args:
            key: Key name or combination (e.g., 'Enter', 'a', 'Control+A')
        """
        modifiers, main_key = split_combo(key)
        modifier_value = calculate_modifier_bitmask(modifiers)

        for mod in modifiers:
            await self.down(mod)
        await self.down(main_key, modifier_value)
        await self.up(main_key, modifier_value)
        for mod in reversed(modifiers):
            await self.up(mod)

    async def type(self, text: str) -> None:
        """Type ``text`` one key at a time."""
        for char in text:
            await self.press(CHAR_KEYS.get(char, char))

    async def insert_text(self, text: str) -> None:
        """Insert ``text`` at the caret without key events."""
        await self._page.call('Input.insertText', {'text': text})
