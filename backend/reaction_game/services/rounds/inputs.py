ACTIVATION_KEY_CODES = frozenset({'Space', 'Enter'})


class PrimaryInputFilter:
    """Turns raw pointer/key events into activate signals.

    Auto-repeat key-downs (``repeat`` set by the browser while a key is held)
    are dropped, so a held key produces one signal. Every fresh key-down
    activates, even when the matching key-up was never delivered.
    """

    def __init__(self, key_codes=ACTIVATION_KEY_CODES):
        self.key_codes = frozenset(key_codes)

    def pointer(self) -> bool:
        return True

    def key_down(self, code, repeat: bool = False) -> bool:
        if not isinstance(code, str) or code not in self.key_codes:
            return False
        return not repeat
