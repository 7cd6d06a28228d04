"""Key definitions for keyboard input."""

import logging

logger = logging.getLogger(__name__)

# Bit values of Input.dispatchKeyEvent's ``modifiers`` field.
MODIFIER_BITS: dict[str, int] = {
    'Alt': 1,
    'Control': 2,
    'Meta': 4,
    'Shift': 8,
}

# key -> (code, windowsVirtualKeyCode)
KEY_CODES: dict[str, tuple[str, int]] = {
    # Modifier keys
    'Alt': ('AltLeft', 18),
    'Control': ('ControlLeft', 17),
    'Meta': ('MetaLeft', 91),
    'Shift': ('ShiftLeft', 16),

    # Navigation keys
    'ArrowDown': ('ArrowDown', 40),
    'ArrowLeft': ('ArrowLeft', 37),
    'ArrowRight': ('ArrowRight', 39),
    'ArrowUp': ('ArrowUp', 38),
    'End': ('End', 35),
    'Home': ('Home', 36),
    'PageDown': ('PageDown', 34),
    'PageUp': ('PageUp', 33),

    # Editing keys
    'Backspace': ('Backspace', 8),
    'Delete': ('Delete', 46),
    'Insert': ('Insert', 45),

    # Whitespace keys
    'Enter': ('Enter', 13),
    'Tab': ('Tab', 9),
    ' ': ('Space', 32),

    # Special keys
    'Escape': ('Escape', 27),
    'CapsLock': ('CapsLock', 20),
    'Pause': ('Pause', 19),
}
KEY_CODES.update({f'F{n}': (f'F{n}', 111 + n) for n in range(1, 13)})

# Characters typed through a named key.
CHAR_KEYS: dict[str, str] = {
    '\n': 'Enter',
    '\r': 'Enter',
    '\t': 'Tab',
}

# Keys that produce text when pressed.
KEY_TEXT: dict[str, str] = {
    'Enter': '\r',
    'Tab': '\t',
}


def get_key_info(key: str) -> tuple[str, int | None]:
    """Get the code and virtual key code for a key.

    Args:
        key: Key name (e.g., 'Enter', 'Tab', 'a', 'Control')

    Returns:
        Tuple of (code, windowsVirtualKeyCode)
    """
    if key in KEY_CODES:
        return KEY_CODES[key]

    if len(key) == 1:
        if key.isascii() and key.isalpha():
            return (f'Key{key.upper()}', ord(key.upper()))
        if key.isdigit():
            return (f'Digit{key}', ord(key))
        return ('', None)

    logger.warning(f'Unknown key: {key}, using default handling')
    return (key, None)


def split_combo(combo: str) -> tuple[list[str], str]:
    """Split 'Control+Shift+A' into (['Control', 'Shift'], 'A'). A lone '+' is a key."""
    if combo == '+' or '+' not in combo:
        return [], combo
    *modifiers, key = combo.split('+')
    if key == '' and combo.endswith('++'):
        modifiers, key = modifiers[:-1], '+'
    return modifiers, key


def calculate_modifier_bitmask(modifiers: list[str] | None) -> int:
    """Calculate the modifier bitmask from a list of modifier names.

    Args:
        modifiers: List of modifier names ('Alt', 'Control', 'Meta', 'Shift')

    Returns:
        Integer bitmask for Input events
    """
    bitmask = 0
    for mod in modifiers or []:
        bitmask |= MODIFIER_BITS.get(mod, 0)
    return bitmask
