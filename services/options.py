from .observable import Observable


class Options:
    """App-wide preferences. Memory only; reset on restart."""

    def __init__(self, dark_theme: bool = False):
        self.dark_theme: Observable[bool] = Observable(dark_theme)

    def toggle_theme(self) -> bool:
        value = not self.dark_theme.get()
        self.dark_theme.set(value)
        return value

    def to_dict(self) -> dict:
        return {'dark_theme': self.dark_theme.get()}
